"""
Decoder for the chunked container the CDN wraps its blobs in.

A blob starts with the preamble b"SHCC" + [u32] 0x1f, followed by a stream of chunks:
	[u8] - kind, 0 = raw, 2 = compressed
	[u32] - uncompressed size
	[u32] - compressed size
	[bytes] - payload, compressed size bytes
The decoded payload is the concatenation of all chunk outputs in stream order.
The decoded first chunk starts with the 16 byte hash the blob is addressed by, see blob_hash.
"""
import contextlib
import enum
import logging
from collections import namedtuple

from .b64m import content_hash
from .errors import DecodeError, DecompressionError, DecompressionSizeMismatch, MalformedChunk, TruncatedContainer, UnsupportedFormat
from .manifest import HASH_LENGTH
from .stream import c_ubyte, c_uint, EndOfStream, ReadStream

log = logging.getLogger(__name__)

MAGIC = b"SHCC"
HEADER_VERSION = 0x1f
PREAMBLE = MAGIC+c_uint.pack(HEADER_VERSION)
CHUNK_HEADER_SIZE = 9
# bytes at the end of a blob that aren't covered by its hash
FOOTER_SIZE = 15

class ChunkKind(enum.Enum):
	Raw = 0
	CompressedA = 2

ContainerChunk = namedtuple("ContainerChunk", ("kind", "compressed_size", "uncompressed_size", "payload"))

def iter_chunks(data):
	"""
	Split a chunk stream into its chunks without decompressing anything.

	Yields:
		(offset, ContainerChunk) tuples, offset being the position of the chunk header.
	Raises:
		TruncatedContainer if the data ends inside a chunk header or payload.
		UnsupportedFormat on an unknown chunk kind.
		MalformedChunk if a raw chunk declares different sizes.
	"""
	stream = ReadStream(data)
	while not stream.all_read():
		offset = stream.read_offset
		try:
			kind_id = stream.read(c_ubyte)
			uncompressed_size = stream.read(c_uint)
			compressed_size = stream.read(c_uint)
		except EndOfStream as e:
			raise TruncatedContainer("data ends inside chunk header (%i of %i bytes)" % (len(stream)-offset, CHUNK_HEADER_SIZE), offset) from e

		try:
			kind = ChunkKind(kind_id)
		except ValueError:
			raise UnsupportedFormat("unknown chunk kind %i" % kind_id, offset) from None

		if kind == ChunkKind.Raw and compressed_size != uncompressed_size:
			raise MalformedChunk("raw chunk declares %i bytes stored but %i bytes uncompressed" % (compressed_size, uncompressed_size), offset)

		try:
			payload = stream.read(bytes, length=compressed_size)
		except EndOfStream as e:
			raise TruncatedContainer("chunk payload needs %i bytes, only %i left" % (compressed_size, e.available), offset) from e

		yield offset, ContainerChunk(kind, compressed_size, uncompressed_size, payload)

def decode_chunk(offset, chunk, decompress_a) -> bytes:
	if chunk.kind == ChunkKind.Raw:
		log.debug("raw chunk at %i, %i bytes", offset, chunk.compressed_size)
		return chunk.payload

	log.debug("compressed chunk at %i, %i -> %i bytes", offset, chunk.compressed_size, chunk.uncompressed_size)
	try:
		decompressed = decompress_a(chunk.payload, chunk.uncompressed_size)
	except DecompressionError as e:
		if e.offset is None:
			e.offset = offset
		raise
	if len(decompressed) != chunk.uncompressed_size:
		raise DecompressionSizeMismatch(chunk.uncompressed_size, len(decompressed), offset)
	return decompressed

def decode_container(data, decompress_a) -> bytes:
	out = bytearray()
	for offset, chunk in iter_chunks(data):
		out += decode_chunk(offset, chunk, decompress_a)
	return bytes(out)

def raw_only(compressed, decompressed_size):
	"""decompress_a for callers without a decompressor, fails on any compressed chunk."""
	raise DecompressionError("compressed chunk of %i bytes but no decompressor is available" % decompressed_size)

def check_preamble(data) -> None:
	if data[:len(MAGIC)] != MAGIC:
		raise UnsupportedFormat("not a SHCC container, starts with %r" % bytes(data[:len(MAGIC)]), 0)
	if len(data) < len(PREAMBLE):
		raise TruncatedContainer("data ends inside the preamble", 0)
	if data[len(MAGIC):len(PREAMBLE)] != PREAMBLE[len(MAGIC):]:
		raise UnsupportedFormat("unsupported container header version %i" % ReadStream(data[len(MAGIC):len(PREAMBLE)]).read(c_uint), len(MAGIC))

@contextlib.contextmanager
def blob_offsets():
	"""Shift the offset of decode errors raised inside from the chunk stream to the whole blob."""
	try:
		yield
	except DecodeError as e:
		if e.offset is not None:
			e.offset += len(PREAMBLE)
		raise

def unpack_blob(data, decompress_a) -> bytes:
	"""Check the preamble of a blob downloaded from the CDN and decode the chunks behind it."""
	check_preamble(data)
	with blob_offsets():
		return decode_container(data[len(PREAMBLE):], decompress_a)

def _first_chunk(data, decompress_a):
	"""Returns the decoded first chunk and the offset of the second chunk in the chunk stream, or None."""
	chunks = iter_chunks(data)
	try:
		offset, chunk = next(chunks)
	except StopIteration:
		raise TruncatedContainer("container holds no chunks", 0) from None
	header = decode_chunk(offset, chunk, decompress_a)
	second = next(chunks, None)
	return header, None if second is None else second[0]

def blob_hash(data, decompress_a) -> bytes:
	"""
	Compute the content hash a blob is addressed by on the CDN.

	The hash is md5 over the preamble, the decoded first chunk without its leading hash,
	and the stored payload of the second chunk if there is one, minus its trailing footer.
	"""
	check_preamble(data)
	chunks = data[len(PREAMBLE):]
	with blob_offsets():
		header, second_offset = _first_chunk(chunks, decompress_a)
	hashed = PREAMBLE+header[HASH_LENGTH:]
	if second_offset is not None:
		hashed += chunks[second_offset+CHUNK_HEADER_SIZE:len(chunks)-FOOTER_SIZE]
	return content_hash(hashed)
