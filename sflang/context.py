"""
Explicitly owned set of decompressors that decoding calls are given.

	with DecoderContext.open(lib_dir) as context:
		payload = context.unpack_blob(data)
		table = context.decode_strings(payload)

Tests construct DecoderContext directly with stub functions.
"""
import importlib.resources

import zstandard

from . import languages, shcc
from .errors import DecompressionError
from .oodle import Oodle

DICTIONARY_RESOURCE = "data/languages.dict"

def load_dictionary() -> bytes:
	return importlib.resources.files(__package__).joinpath(DICTIONARY_RESOURCE).read_bytes()

def zstd_decompress(compressed: bytes, dictionary: bytes) -> bytes:
	dict_data = zstandard.ZstdCompressionDict(dictionary, dict_type=zstandard.DICT_TYPE_RAWCONTENT)
	# streaming decompression also handles frames without a content size
	decompressor = zstandard.ZstdDecompressor(dict_data=dict_data).decompressobj()
	try:
		out = decompressor.decompress(compressed)
	except zstandard.ZstdError as e:
		raise DecompressionError("zstd: "+str(e)) from e
	if not decompressor.eof:
		raise DecompressionError("zstd: data ends inside the frame")
	if decompressor.unused_data:
		raise DecompressionError("zstd: %i bytes after the end of the frame" % len(decompressor.unused_data))
	return out

class DecoderContext:
	def __init__(self, decompress_a, decompress_b=zstd_decompress, dictionary=None, on_close=None):
		self.decompress_a = decompress_a
		self.decompress_b = decompress_b
		self.dictionary = load_dictionary() if dictionary is None else dictionary
		self._on_close = on_close

	@classmethod
	def open(cls, lib_dir=None):
		oodle = Oodle.load(lib_dir)
		return cls(oodle.decompress_chunk, on_close=oodle.close)

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc_value, traceback):
		self.close()

	def close(self) -> None:
		if self._on_close is not None:
			self._on_close()
			self._on_close = None

	def decode_container(self, data) -> bytes:
		return shcc.decode_container(data, self.decompress_a)

	def unpack_blob(self, data) -> bytes:
		return shcc.unpack_blob(data, self.decompress_a)

	def decode_strings(self, payload) -> languages.StringTable:
		return languages.decode_strings(payload, self.decompress_b, self.dictionary)
