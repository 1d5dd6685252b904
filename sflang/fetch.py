"""
Download of manifest entries from the CDN.

Files are addressed by path, type tag and content hash:
	<base>/0[_<locale>]/<path>!<type tag in hex>_<b64m hash>
A file already on disk with the expected hash and size is not downloaded again.
"""
import enum
import logging
import os

import requests

from .b64m import b64m_encode, UNKNOWN_HASH
from .errors import DecodeError, IntegrityError, TransportError
from .shcc import blob_hash, raw_only

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://content.soulframe.com"
DEFAULT_TIMEOUT = 30

TYPE_MANIFEST = 0xe
TYPE_BIN = 0x2c

class FetchOutcome(enum.Enum):
	Skipped = 1
	Downloaded = 2

class UrlBuilder:
	def __init__(self, base_url=DEFAULT_BASE_URL, locale=None):
		self.base_url = base_url.rstrip("/")
		self.locale = locale

	def __repr__(self):
		return "UrlBuilder(%r, %r)" % (self.base_url, self.locale)

	@property
	def prefix(self) -> str:
		if self.locale:
			return "/0_"+self.locale
		return "/0"

	def __call__(self, entry, type_tag: int) -> str:
		path = entry.path if entry.path.startswith("/") else "/"+entry.path
		return "%s%s%s!%X_%s" % (self.base_url, self.prefix, path, type_tag, b64m_encode(entry.hash))

	def with_base(self, base_url):
		return UrlBuilder(base_url, self.locale)

class HttpTransport:
	"""requests session that owns the timeout policy. Content encoding is disabled, blobs are served as is."""

	def __init__(self, timeout=DEFAULT_TIMEOUT, session=None):
		self.timeout = timeout
		self.session = requests.Session() if session is None else session
		self.session.headers["Accept-Encoding"] = "identity"

	def get(self, url: str) -> bytes:
		try:
			response = self.session.get(url, timeout=self.timeout)
			response.raise_for_status()
		except requests.RequestException as e:
			raise TransportError(str(e), url=url) from e
		return response.content

	def close(self) -> None:
		self.session.close()

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc_value, traceback):
		self.close()

def destination_path(destination_dir, path: str) -> str:
	relative = path.lstrip("/")
	if not relative or os.path.isabs(relative) or ".." in relative.split("/"):
		raise ValueError("unsafe manifest path %r" % path)
	return os.path.join(destination_dir, *relative.split("/"))

def matches(data: bytes, entry, decompress_a=raw_only) -> bool:
	"""Whether data is the blob entry lists, raising DecodeError if it isn't a blob at all."""
	if entry.hash == UNKNOWN_HASH or len(data) != entry.size:
		return False
	return blob_hash(data, decompress_a) == entry.hash

def is_current(file_path: str, entry, decompress_a=raw_only) -> bool:
	if entry.hash == UNKNOWN_HASH or not os.path.isfile(file_path):
		return False
	if os.path.getsize(file_path) != entry.size:
		return False
	with open(file_path, "rb") as file:
		data = file.read()
	try:
		return matches(data, entry, decompress_a)
	except DecodeError as e:
		log.info("%s on disk is damaged, downloading again: %s", entry.path, e)
		return False

def fetch(entry, destination_dir, url_builder, transport, type_tag=TYPE_BIN, decompress_a=raw_only) -> FetchOutcome:
	file_path = destination_path(destination_dir, entry.path)
	if is_current(file_path, entry, decompress_a):
		log.info("%s is up to date, skipping download", entry.path)
		return FetchOutcome.Skipped

	url = url_builder(entry, type_tag)
	log.info("downloading %s", url)
	try:
		data = transport.get(url)
	except TransportError as e:
		e.path = entry.path
		raise

	os.makedirs(os.path.dirname(file_path), exist_ok=True)
	with open(file_path, "wb") as file:
		file.write(data)

	if entry.hash != UNKNOWN_HASH:
		with open(file_path, "rb") as file:
			written = file.read()
		try:
			actual = blob_hash(written, decompress_a)
		except DecodeError as e:
			os.remove(file_path)
			raise IntegrityError("downloaded %i bytes that aren't a valid blob: %s" % (len(written), e), entry.path, url) from e
		if len(written) != entry.size or actual != entry.hash:
			os.remove(file_path)
			raise IntegrityError("downloaded %i bytes with hash %s, expected %i bytes with hash %s" % (len(written), b64m_encode(actual), entry.size, b64m_encode(entry.hash)), entry.path, url)
	log.debug("wrote %i bytes to %s", len(data), file_path)
	return FetchOutcome.Downloaded
