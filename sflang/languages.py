"""
Decoder for the localized string table stored in Languages.bin.

Payload layout (little-endian):
	[16 bytes] - content hash
	[u32] - 0x14
	[u32] - 0x2b, dictionary compressed string table
	[u32] - 0x01
	[u32] - record count
	[u32, variable length] - size of the decompressed record stream
	[bytes] - record stream compressed against the shared dictionary, until the end of the payload

Decompressed record stream:
	[u32-string] - key
	[u32-string] - value
"""
import logging
from collections.abc import Mapping

from .errors import DecodeError, DecompressionError, DecompressionSizeMismatch, DuplicateKey, RecordCountMismatch, TruncatedRecord, UnsupportedFormat
from .stream import c_uint, EndOfStream, ReadStream

log = logging.getLogger(__name__)

HASH_LENGTH = 16
FORMAT_WORDS = 0x14, 0x2b, 0x01

class StringTable(Mapping):
	"""Read-only mapping of string keys to localized text, iterating in the order the keys were decoded."""

	def __init__(self, items=()):
		self._entries = {}
		for key, value in items:
			if key in self._entries:
				raise DuplicateKey(key)
			self._entries[key] = value

	def __getitem__(self, key):
		return self._entries[key]

	def __iter__(self):
		return iter(self._entries)

	def __len__(self):
		return len(self._entries)

	def __repr__(self):
		return "<StringTable with %i entries>" % len(self._entries)

	def keys_in_order(self):
		return list(self._entries)

def read_header(stream: ReadStream):
	"""Returns (record count, decompressed size), leaving the stream at the compressed data."""
	try:
		stream.skip_read(HASH_LENGTH)
		words = tuple(stream.read(c_uint) for _ in FORMAT_WORDS)
		if words != FORMAT_WORDS:
			raise UnsupportedFormat("format words %s, expected %s" % (", ".join("0x%x" % i for i in words), ", ".join("0x%x" % i for i in FORMAT_WORDS)), HASH_LENGTH)
		record_count = stream.read(c_uint)
		decompressed_size = stream.read_u32_dyn()
	except EndOfStream as e:
		raise UnsupportedFormat("payload too short for a string table header", e.offset) from e
	except ValueError as e:
		raise UnsupportedFormat(str(e), stream.read_offset) from e
	return record_count, decompressed_size

def read_records(data, record_count):
	stream = ReadStream(data)
	for index in range(record_count):
		if stream.all_read():
			raise RecordCountMismatch(record_count, index, stream.read_offset)
		offset = stream.read_offset
		try:
			key = stream.read(str, length_type=c_uint)
			value = stream.read(str, length_type=c_uint)
		except EndOfStream as e:
			raise TruncatedRecord("record %i cut off" % index, e.offset) from e
		except UnicodeDecodeError as e:
			raise DecodeError("record %i is not valid UTF-8" % index, offset) from e
		yield offset, key, value
	if not stream.all_read():
		raise RecordCountMismatch(record_count, "more than %i" % record_count, stream.read_offset)

def decode_strings(payload, decompress_b, dictionary) -> StringTable:
	stream = ReadStream(payload)
	record_count, decompressed_size = read_header(stream)
	data_offset = stream.read_offset
	compressed = payload[data_offset:]
	log.debug("%i records, %i -> %i bytes", record_count, len(compressed), decompressed_size)

	try:
		data = decompress_b(compressed, dictionary)
	except DecompressionError as e:
		if e.offset is None:
			e.offset = data_offset
		raise
	if len(data) != decompressed_size:
		raise DecompressionSizeMismatch(decompressed_size, len(data), data_offset)

	entries = {}
	for offset, key, value in read_records(data, record_count):
		if key in entries:
			raise DuplicateKey(key, offset)
		entries[key] = value
	return StringTable(entries.items())
