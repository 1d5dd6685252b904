import hashlib

import pytest

from sflang.context import zstd_decompress
from sflang.errors import DecompressionError, DecompressionSizeMismatch, MalformedChunk, TruncatedContainer, UnsupportedFormat
from sflang.languages import decode_strings
from sflang.shcc import blob_hash, ChunkKind, decode_container, FOOTER_SIZE, iter_chunks, PREAMBLE, raw_only, unpack_blob
from sflang.stream import c_uint

from builders import blob, chunk, string_table, StubDecompressor

RAW = bytes(range(10))
COMPRESSED = b"\x8c"+b"packed"
UNPACKED = b"twenty bytes of text"

@pytest.fixture
def stub():
	return StubDecompressor({COMPRESSED: UNPACKED})

@pytest.fixture
def two_chunks():
	return chunk(ChunkKind.Raw, RAW)+chunk(ChunkKind.CompressedA, COMPRESSED, uncompressed_size=20)

class TestDecode:
	def test_raw_then_compressed(self, stub, two_chunks):
		payload = decode_container(two_chunks, stub)
		assert len(payload) == 30
		assert payload == RAW+UNPACKED
		assert stub.calls == [(COMPRESSED, 20)]

	def test_deterministic(self, stub, two_chunks):
		assert decode_container(two_chunks, stub) == decode_container(two_chunks, stub)

	def test_empty_stream(self, stub):
		assert decode_container(b"", stub) == b""
		assert stub.calls == []

	def test_empty_raw_chunk(self, stub):
		assert decode_container(chunk(ChunkKind.Raw, b"")+chunk(ChunkKind.Raw, b"x"), stub) == b"x"

	def test_chunks_listed_in_order(self, two_chunks):
		chunks = list(iter_chunks(two_chunks))
		assert [offset for offset, _ in chunks] == [0, 19]
		assert [c.kind for _, c in chunks] == [ChunkKind.Raw, ChunkKind.CompressedA]
		assert chunks[1][1].uncompressed_size == 20
		assert chunks[1][1].compressed_size == len(COMPRESSED)
		assert chunks[1][1].payload == COMPRESSED

class TestRejects:
	def test_unknown_kind(self, stub):
		with pytest.raises(UnsupportedFormat) as excinfo:
			decode_container(chunk(ChunkKind.Raw, RAW)+chunk(1, b"abc"), stub)
		assert excinfo.value.offset == 19

	def test_raw_size_mismatch(self, stub):
		with pytest.raises(MalformedChunk):
			decode_container(chunk(ChunkKind.Raw, RAW, uncompressed_size=11), stub)

	def test_decompressed_size_mismatch(self, stub):
		with pytest.raises(DecompressionSizeMismatch) as excinfo:
			decode_container(chunk(ChunkKind.CompressedA, COMPRESSED, uncompressed_size=21), stub)
		assert excinfo.value.expected == 21
		assert excinfo.value.actual == 20

	def test_decompressor_failure_gets_offset(self, stub):
		with pytest.raises(DecompressionError) as excinfo:
			decode_container(chunk(ChunkKind.Raw, RAW)+chunk(ChunkKind.CompressedA, b"garbage", uncompressed_size=5), stub)
		assert excinfo.value.offset == 19

	def test_every_truncation_inside_a_chunk(self, stub, two_chunks):
		boundaries = {0, 19, len(two_chunks)}
		for length in range(1, len(two_chunks)):
			if length in boundaries:
				continue
			with pytest.raises((TruncatedContainer, MalformedChunk)):
				decode_container(two_chunks[:length], stub)

	def test_payload_longer_than_stream(self, stub):
		with pytest.raises(TruncatedContainer):
			decode_container(chunk(ChunkKind.Raw, RAW, uncompressed_size=12, compressed_size=12), stub)

class TestBlob:
	def test_preamble(self, stub, two_chunks):
		assert PREAMBLE == b"SHCC\x1f\x00\x00\x00"
		assert unpack_blob(blob(two_chunks), stub) == RAW+UNPACKED

	def test_not_a_container(self, stub):
		with pytest.raises(UnsupportedFormat):
			unpack_blob(b"ndpk\x01\xff\x00\x00", stub)

	def test_other_version(self, stub, two_chunks):
		with pytest.raises(UnsupportedFormat):
			unpack_blob(b"SHCC"+c_uint.pack(0x20)+two_chunks, stub)

	def test_short_preamble(self, stub):
		with pytest.raises(TruncatedContainer):
			unpack_blob(b"SHCC\x1f", stub)

	def test_offsets_relative_to_blob(self, stub):
		with pytest.raises(TruncatedContainer) as excinfo:
			unpack_blob(blob(chunk(ChunkKind.Raw, RAW))[:-1], stub)
		assert excinfo.value.offset == len(PREAMBLE)

class TestHash:
	def test_single_chunk(self, stub):
		data = blob(chunk(ChunkKind.Raw, b"\x11"*16+b"payload bytes"))
		assert blob_hash(data, stub) == hashlib.md5(PREAMBLE+b"payload bytes").digest()

	def test_leading_hash_not_covered(self, stub):
		first = blob(chunk(ChunkKind.Raw, b"\x11"*16+b"payload bytes"))
		second = blob(chunk(ChunkKind.Raw, b"\x22"*16+b"payload bytes"))
		assert blob_hash(first, stub) == blob_hash(second, stub)

	def test_compressed_first_chunk(self, stub):
		data = blob(chunk(ChunkKind.CompressedA, COMPRESSED, uncompressed_size=20))
		assert blob_hash(data, stub) == hashlib.md5(PREAMBLE+UNPACKED[16:]).digest()
		with pytest.raises(DecompressionError):
			blob_hash(data, raw_only)

	def test_second_chunk_stored_payload_without_footer(self, stub):
		header = b"\x11"*16+b"head"
		stored = b"\x8c"+bytes(range(40))
		data = blob(chunk(ChunkKind.Raw, header), chunk(ChunkKind.CompressedA, stored, uncompressed_size=100))
		assert blob_hash(data, stub) == hashlib.md5(PREAMBLE+b"head"+stored[:-FOOTER_SIZE]).digest()
		# the second chunk isn't decompressed for the hash
		assert stub.calls == []

	def test_not_a_container(self, stub):
		with pytest.raises(UnsupportedFormat):
			blob_hash(b"x"*20, stub)

	def test_no_chunks(self, stub):
		with pytest.raises(TruncatedContainer) as excinfo:
			blob_hash(PREAMBLE, stub)
		assert excinfo.value.offset == len(PREAMBLE)

class TestCutAtChunkBoundary:
	"""A cut between two chunks leaves a valid chunk stream, the string table behind it still fails to decode."""

	PAIRS = [("/Menu/Title", "Soulframe"), ("/Menu/Quit", "Quit"), ("/Menu/Continue", "Press to continue.")]

	def test_every_boundary(self, dictionary, stub):
		payload = string_table(self.PAIRS, dictionary)
		splits = [0, 10, 33, 33+(len(payload)-33)//2, len(payload)-1, len(payload)]
		chunks = [chunk(ChunkKind.Raw, payload[start:end]) for start, end in zip(splits, splits[1:])]
		data = blob(*chunks)
		assert dict(decode_strings(unpack_blob(data, stub), zstd_decompress, dictionary)) == dict(self.PAIRS)

		for count in range(1, len(chunks)):
			cut = blob(*chunks[:count])
			partial = unpack_blob(cut, stub)
			assert partial == payload[:splits[count]]
			with pytest.raises((UnsupportedFormat, DecompressionError)):
				decode_strings(partial, zstd_decompress, dictionary)
