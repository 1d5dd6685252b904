"""
Binding for the decompressor used by compressed container chunks (OodleLZ_Decompress in oo2core_9).

The library isn't redistributable, so it is loaded at runtime from the first place it's found.

A compressed chunk holds one or more blocks, each decompressed on its own:
	[8 bytes, big-endian] - block header
		byte 0 - 0x80
		bits 2-25 of the first u32 - compressed size of the block
		bits 5-28 of the second u32 - decompressed size of the block
		low nibble of byte 7 - 0x1
	[bytes] - compressed block, starting with the 0x8c stream marker
"""
import ctypes
import logging
import os
import sys
from collections import namedtuple
from ctypes import c_char_p, c_int, c_size_t, c_ssize_t, c_void_p

from .errors import DecompressionError, DecompressionSizeMismatch, LibraryNotFound
from .stream import be_uint, EndOfStream, ReadStream

log = logging.getLogger(__name__)

LIB_DIR_VARIABLE = "SFLANG_LIB_DIR"

BLOCK_HEADER_SIZE = 8
BLOCK_HEADER_MAGIC = 0x80
BLOCK_STREAM_MARKER = 0x8c

Block = namedtuple("Block", ("offset", "compressed_size", "decompressed_size", "data"))

def iter_blocks(data, decompressed_size):
	"""
	Split a compressed chunk payload into its blocks, stopping once they add up to decompressed_size.

	Raises:
		DecompressionError on a malformed block header, a block running past the payload, or bytes left after the last block.
	"""
	stream = ReadStream(data)
	total = 0
	while total < decompressed_size:
		offset = stream.read_offset
		try:
			header = stream.read(bytes, length=BLOCK_HEADER_SIZE)
		except EndOfStream as e:
			raise DecompressionError("data ends inside block header at %i, %i of %i bytes decompressed" % (offset, total, decompressed_size)) from e
		if header[0] != BLOCK_HEADER_MAGIC:
			raise DecompressionError("block header at %i starts with 0x%02x, expected 0x%02x" % (offset, header[0], BLOCK_HEADER_MAGIC))
		if header[7] & 0x0f != 0x01:
			raise DecompressionError("block header at %i ends with 0x%02x" % (offset, header[7]))
		header_stream = ReadStream(header)
		block_compressed = (header_stream.read(be_uint) >> 2) & 0xffffff
		block_decompressed = (header_stream.read(be_uint) >> 5) & 0xffffff

		try:
			block = stream.read(bytes, length=block_compressed)
		except EndOfStream as e:
			raise DecompressionError("block at %i needs %i bytes, only %i left" % (offset, block_compressed, e.available)) from e
		if block[:1] != bytes((BLOCK_STREAM_MARKER,)):
			raise DecompressionError("block at %i doesn't start with the 0x%02x stream marker" % (offset, BLOCK_STREAM_MARKER))
		if block_decompressed == 0:
			raise DecompressionError("block at %i declares no decompressed bytes" % offset)

		yield Block(offset, block_compressed, block_decompressed, block)
		total += block_decompressed

	if not stream.all_read():
		raise DecompressionError("%i bytes after the last block" % stream.remaining())

def decompress_blocks(data, decompressed_size: int, decompress_block) -> bytes:
	"""Decompress every block of a chunk payload with decompress_block(block, block_decompressed_size)."""
	out = bytearray()
	for block in iter_blocks(data, decompressed_size):
		log.debug("block at %i, %i -> %i bytes", block.offset, block.compressed_size, block.decompressed_size)
		decompressed = decompress_block(block.data, block.decompressed_size)
		if len(decompressed) != block.decompressed_size:
			raise DecompressionSizeMismatch(block.decompressed_size, len(decompressed))
		out += decompressed
	return bytes(out)

def library_filename(name: str) -> str:
	if sys.platform == "win32":
		return name+".dll"
	return name+".so"

def find_runtime_lib(filename, lib_dir=None) -> str:
	candidates = []
	if os.environ.get(LIB_DIR_VARIABLE):
		candidates.append(os.path.join(os.environ[LIB_DIR_VARIABLE], filename))
	if lib_dir:
		candidates.append(os.path.join(lib_dir, filename))
	cwd = os.getcwd()
	candidates.append(os.path.join(cwd, "lib", filename))
	candidates.append(os.path.join(cwd, filename))
	candidates.append(os.path.join(os.path.dirname(os.path.abspath(sys.argv[0])), "lib", filename))

	seen = []
	for candidate in candidates:
		if candidate in seen:
			continue
		seen.append(candidate)
		if os.path.isfile(candidate):
			return candidate
	raise LibraryNotFound(filename, seen)

class Oodle:
	def __init__(self, path):
		log.debug("loading %s", path)
		self._lib = ctypes.CDLL(path)
		self._decompress = self._lib.OodleLZ_Decompress
		self._decompress.restype = c_ssize_t
		self._decompress.argtypes = (
			c_char_p, c_size_t, c_void_p, c_size_t, # compressed, raw
			c_int, c_int, c_int, # fuzz safe, check crc, verbosity
			c_void_p, c_size_t, # decoder base buffer
			c_void_p, c_void_p, # callback, callback data
			c_void_p, c_size_t, # scratch memory
			c_int) # thread phase

	@classmethod
	def load(cls, lib_dir=None):
		return cls(find_runtime_lib(library_filename("oo2core_9"), lib_dir))

	def decompress(self, compressed: bytes, decompressed_size: int) -> bytes:
		if self._lib is None:
			raise DecompressionError("decompressor library was already released")
		out = ctypes.create_string_buffer(decompressed_size)
		result = self._decompress(bytes(compressed), len(compressed), out, decompressed_size, 0, 0, 0, None, 0, None, None, None, 0, 3)
		if result <= 0 and decompressed_size > 0:
			raise DecompressionError("OodleLZ_Decompress failed on %i compressed bytes" % len(compressed))
		return out.raw[:result]

	def decompress_chunk(self, payload: bytes, decompressed_size: int) -> bytes:
		return decompress_blocks(payload, decompressed_size, self.decompress)

	def close(self) -> None:
		self._lib = None
		self._decompress = None
