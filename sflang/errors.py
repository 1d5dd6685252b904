"""
Exceptions raised while fetching and decoding language assets.

Decode errors carry the byte offset at which the problem was found and,
where known, the asset path being decoded.
"""

class DecodeError(Exception):
	def __init__(self, message, offset=None, path=None):
		super().__init__(message)
		self.message = message
		self.offset = offset
		self.path = path

	def __str__(self):
		text = self.message
		if self.offset is not None:
			text += " (at offset %i)" % self.offset
		if self.path is not None:
			text = self.path+": "+text
		return text

class MalformedManifest(DecodeError):
	pass

class TruncatedManifest(MalformedManifest):
	pass

class MalformedChunk(DecodeError):
	pass

class TruncatedContainer(DecodeError):
	pass

class DecompressionError(DecodeError):
	pass

class DecompressionSizeMismatch(DecompressionError):
	def __init__(self, expected, actual, offset=None, path=None):
		super().__init__("decompressed %i bytes, expected %i" % (actual, expected), offset, path)
		self.expected = expected
		self.actual = actual

class UnsupportedFormat(DecodeError):
	pass

class DuplicateKey(DecodeError):
	def __init__(self, key, offset=None, path=None):
		super().__init__("duplicate key %r" % key, offset, path)
		self.key = key

class TruncatedRecord(DecodeError):
	pass

class RecordCountMismatch(DecodeError):
	def __init__(self, expected, actual, offset=None, path=None):
		super().__init__("found %s records, header declares %i" % (actual, expected), offset, path)
		self.expected = expected
		self.actual = actual

class FetchError(Exception):
	def __init__(self, message, path=None, url=None):
		super().__init__(message)
		self.message = message
		self.path = path
		self.url = url

	def __str__(self):
		text = self.message
		if self.url is not None:
			text += " ["+self.url+"]"
		if self.path is not None:
			text = self.path+": "+text
		return text

class TransportError(FetchError):
	pass

class IntegrityError(FetchError):
	pass

class LibraryNotFound(Exception):
	def __init__(self, filename, candidates):
		tried = "\n".join("  - "+str(candidate) for candidate in candidates)
		super().__init__("Missing runtime library %s. Tried:\n%s\nSet SFLANG_LIB_DIR or [paths] lib_dir to a folder containing it." % (filename, tried))
		self.filename = filename
		self.candidates = candidates
