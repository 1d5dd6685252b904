import base64
import hashlib

# hash of an entry that isn't known yet, such as the root manifest
UNKNOWN_HASH = b"\xff"*16

def content_hash(data: bytes) -> bytes:
	return hashlib.md5(data).digest()

def b64m_encode(data: bytes) -> str:
	"""Base64 without padding, with "/" replaced by "-" so the result can be used in a URL path."""
	return base64.b64encode(data).decode("ascii").rstrip("=").replace("/", "-")

def b64m_decode(text: str) -> bytes:
	normalized = text.replace("-", "/")
	normalized += "="*(-len(normalized) % 4)
	return base64.b64decode(normalized, validate=True)
