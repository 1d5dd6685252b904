"""
Cursor over a byte buffer for reading the little-endian binary formats used by the CDN.

Usage mirrors the bitstream readers the other tools use:
	stream = ReadStream(data)
	count = stream.read(c_uint)
	name = stream.read(str, length_type=c_uint)
	hash_ = stream.read(bytes, length=16)
"""
import struct

class IntStruct:
	_struct = None

	@classmethod
	def pack(cls, value) -> bytes:
		return cls._struct.pack(value)

class c_ubyte(IntStruct):
	_struct = struct.Struct("<B")

class c_ushort(IntStruct):
	_struct = struct.Struct("<H")

class c_uint(IntStruct):
	_struct = struct.Struct("<I")

class c_uint64(IntStruct):
	_struct = struct.Struct("<Q")

class be_uint(IntStruct):
	_struct = struct.Struct(">I")

class EndOfStream(EOFError):
	def __init__(self, offset, needed, available):
		super().__init__("tried to read %i bytes at offset %i, only %i available" % (needed, offset, available))
		self.offset = offset
		self.needed = needed
		self.available = available

class ReadStream:
	def __init__(self, data, offset=0):
		self._data = memoryview(bytes(data))
		self.read_offset = offset

	def __len__(self):
		return len(self._data)

	def remaining(self) -> int:
		return len(self._data) - self.read_offset

	def all_read(self) -> bool:
		return self.read_offset == len(self._data)

	def _take(self, length):
		if length > self.remaining():
			raise EndOfStream(self.read_offset, length, self.remaining())
		start = self.read_offset
		self.read_offset += length
		return self._data[start:self.read_offset]

	def skip_read(self, length) -> None:
		self._take(length)

	def read(self, type_, length=None, length_type=None):
		"""
		Read a value of the given type.
		Arguments:
			type_: An IntStruct subclass, bytes, or str.
			length: Number of bytes for bytes/str reads.
			length_type: IntStruct subclass of a length prefix to read first, if length is not given.
		Raises:
			EndOfStream if the buffer ends before the value does. The offset is left unchanged in that case for fixed width reads.
			UnicodeDecodeError if a str read is not valid UTF-8.
		"""
		if type_ is bytes or type_ is str:
			if length is None:
				if length_type is None:
					raise TypeError("bytes and str reads need length or length_type")
				start = self.read_offset
				length = self.read(length_type)
				if length > self.remaining():
					available = self.remaining()
					self.read_offset = start
					raise EndOfStream(start, length_type._struct.size+length, length_type._struct.size+available)
			value = self._take(length).tobytes()
			if type_ is str:
				return value.decode("utf-8")
			return value
		if isinstance(type_, type) and issubclass(type_, IntStruct):
			return type_._struct.unpack(self._take(type_._struct.size))[0]
		raise TypeError(type_)

	def read_u32_dyn(self) -> int:
		# 7 bits per byte, least significant group first, 5th byte holds the top 4 bits
		value = 0
		for shift in range(0, 28, 7):
			byte = self.read(c_ubyte)
			value |= (byte & 0x7f) << shift
			if not byte & 0x80:
				return value
		byte = self.read(c_ubyte)
		if byte > 0x0f:
			raise ValueError("invalid final byte 0x%02x in variable length integer at offset %i" % (byte, self.read_offset-1))
		return value | byte << 28

def pack_u32_dyn(value: int) -> bytes:
	out = bytearray()
	for _ in range(4):
		if value < 0x80:
			out.append(value)
			return bytes(out)
		out.append(value & 0x7f | 0x80)
		value >>= 7
	if value > 0x0f:
		raise ValueError("value does not fit in 32 bits")
	out.append(value)
	return bytes(out)
