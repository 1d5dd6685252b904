"""
Manifests map asset paths to the hash and size of their current blob on the CDN.

Layout (little-endian):
	[u32] - number of entries
		[u32-string] - path, UTF-8
		[16 bytes] - content hash
		[u32] - size
		[u32] - flags
"""
import io
from collections import namedtuple

from .errors import MalformedManifest, TruncatedManifest
from .stream import c_uint, EndOfStream, ReadStream

ROOT_MANIFEST = "/H.Cache.bin"
HASH_LENGTH = 16

ManifestEntry = namedtuple("ManifestEntry", ("path", "hash", "size", "flags"))

def locale_manifest_path(locale: str) -> str:
	return "/B.Cache.Windows_"+locale+".bin"

class Manifest:
	def __init__(self, entries=()):
		self._entries = tuple(entries)
		self._by_path = {}
		for entry in self._entries:
			if entry.path in self._by_path:
				raise MalformedManifest("duplicate path "+entry.path)
			self._by_path[entry.path] = entry

	def __len__(self):
		return len(self._entries)

	def __iter__(self):
		return iter(self._entries)

	def __getitem__(self, index):
		return self._entries[index]

	def __contains__(self, path):
		return path in self._by_path

	def __repr__(self):
		return "<Manifest with %i entries>" % len(self._entries)

	def get(self, path, default=None):
		return self._by_path.get(path, default)

	def paths(self):
		return [entry.path for entry in self._entries]

def parse_manifest(data) -> Manifest:
	stream = ReadStream(data)
	entries = []
	try:
		count = stream.read(c_uint)
	except EndOfStream as e:
		raise TruncatedManifest("manifest too short for entry count", e.offset) from e
	try:
		for _ in range(count):
			record_offset = stream.read_offset
			try:
				path = stream.read(str, length_type=c_uint)
			except UnicodeDecodeError as e:
				raise MalformedManifest("path is not valid UTF-8", record_offset) from e
			hash_ = stream.read(bytes, length=HASH_LENGTH)
			size = stream.read(c_uint)
			flags = stream.read(c_uint)
			entries.append(ManifestEntry(path, hash_, size, flags))
	except EndOfStream as e:
		raise TruncatedManifest("manifest ends inside entry %i of %i" % (len(entries)+1, count), e.offset) from e

	if not stream.all_read():
		raise MalformedManifest("%i trailing bytes after %i entries" % (stream.remaining(), count), stream.read_offset)
	return Manifest(entries)

def write_manifest(entries) -> bytes:
	entries = list(entries)
	out = io.BytesIO()
	out.write(c_uint.pack(len(entries)))
	for entry in entries:
		if len(entry.hash) != HASH_LENGTH:
			raise ValueError("hash of %s is %i bytes, expected %i" % (entry.path, len(entry.hash), HASH_LENGTH))
		encoded = entry.path.encode()
		out.write(c_uint.pack(len(encoded)))
		out.write(encoded)
		out.write(entry.hash)
		out.write(c_uint.pack(entry.size))
		out.write(c_uint.pack(entry.flags))
	return out.getvalue()
