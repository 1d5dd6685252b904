import pytest

from sflang import oodle
from sflang.context import DecoderContext, load_dictionary, zstd_decompress
from sflang.errors import DecompressionError, LibraryNotFound
from sflang.shcc import ChunkKind

from builders import blob, chunk, compress, StubDecompressor, string_table

def test_dictionary_is_shipped():
	dictionary = load_dictionary()
	assert len(dictionary) > 1000
	assert load_dictionary() == dictionary

def test_zstd_needs_the_same_dictionary(dictionary):
	compressed = compress(b"Press to continue. Press to continue.", dictionary)
	assert zstd_decompress(compressed, dictionary) == b"Press to continue. Press to continue."
	with pytest.raises(DecompressionError):
		zstd_decompress(b"\x00"*16, dictionary)

def test_zstd_rejects_data_after_frame(dictionary):
	compressed = compress(b"Press to continue.", dictionary)
	with pytest.raises(DecompressionError) as excinfo:
		zstd_decompress(compressed+b"GARBAGE-AFTER-FRAME", dictionary)
	assert "19 bytes after the end of the frame" in str(excinfo.value)

def test_zstd_rejects_cut_frame(dictionary):
	compressed = compress(b"Press to continue. "*20, dictionary)
	with pytest.raises(DecompressionError):
		zstd_decompress(compressed[:-4], dictionary)

def test_strings_with_garbage_after_frame(dictionary):
	payload = string_table([("k", "v")], dictionary)+b"GARBAGE-AFTER-FRAME"
	with DecoderContext(StubDecompressor(), dictionary=dictionary) as context:
		with pytest.raises(DecompressionError):
			context.decode_strings(payload)

def test_full_decode_with_stubs(dictionary):
	payload = string_table([("key", "value")], dictionary)
	split = len(payload)//2
	stub = StubDecompressor({b"packed": payload[split:]})
	data = blob(chunk(ChunkKind.Raw, payload[:split]), chunk(ChunkKind.CompressedA, b"packed", uncompressed_size=len(payload)-split))
	with DecoderContext(stub, dictionary=dictionary) as context:
		assert dict(context.decode_strings(context.unpack_blob(data))) == {"key": "value"}

def test_close_runs_once():
	closed = []
	context = DecoderContext(StubDecompressor(), dictionary=b"dictionary", on_close=lambda: closed.append(True))
	with context:
		pass
	context.close()
	assert closed == [True]

def test_missing_library(tmp_path, monkeypatch):
	monkeypatch.chdir(tmp_path)
	monkeypatch.setenv(oodle.LIB_DIR_VARIABLE, str(tmp_path/"env"))
	with pytest.raises(LibraryNotFound) as excinfo:
		DecoderContext.open(str(tmp_path/"configured"))
	assert str(tmp_path/"env") in str(excinfo.value)
	assert str(tmp_path/"configured") in str(excinfo.value)

def test_library_search_order(tmp_path, monkeypatch):
	monkeypatch.chdir(tmp_path)
	(tmp_path/"lib").mkdir()
	(tmp_path/"lib"/"oo2core_9.so").write_bytes(b"")
	(tmp_path/"configured").mkdir()
	(tmp_path/"configured"/"oo2core_9.so").write_bytes(b"")
	monkeypatch.delenv(oodle.LIB_DIR_VARIABLE, raising=False)
	assert oodle.find_runtime_lib("oo2core_9.so") == str(tmp_path/"lib"/"oo2core_9.so")
	assert oodle.find_runtime_lib("oo2core_9.so", str(tmp_path/"configured")) == str(tmp_path/"configured"/"oo2core_9.so")
