"""Encoders and decoders for the fixed width fields of a header block"""

from .constants import *
from .errors import *

def decodeString(block, offset, length):
 """Returns the ASCII text of a field, up to the first NUL byte"""
 field = bytes(block[offset:offset+length])
 return field.split(b'\0', 1)[0].decode('ascii', 'replace')

def encodeString(text, block, offset, length, nullTerminate=False):
 """Writes ASCII text into a field and pads it with NUL bytes"""
 try:
  data = text.encode('ascii')
 except UnicodeEncodeError as e:
  raise FieldEncodingError('Cannot encode %r as ASCII' % text) from e
 if len(data) + (1 if nullTerminate else 0) > length:
  raise FieldEncodingError('The string does not fit in its space')
 block[offset:offset+length] = data.ljust(length, b'\0')

def fitsString(text, length):
 try:
  return len(text.encode('ascii')) <= length
 except UnicodeEncodeError:
  return False

def truncateString(text, length):
 """An ASCII approximation of text for readers that ignore extended headers"""
 return text.encode('ascii', 'replace')[:length].decode('ascii')

def _decodeBase256(field):
 if field[0] & 0x40:
  # negative, two's complement over the whole field
  return int.from_bytes(field, 'big', signed=True)
 return int.from_bytes(bytes([field[0] & 0x3f]) + field[1:], 'big')

def decodeNumber(block, offset, length, bits=64):
 """Decodes an octal or base-256 field. Returns None if the field is empty"""
 field = bytes(block[offset:offset+length])
 if field[0] & 0x80:
  value = _decodeBase256(field)
  if not -(1 << (bits - 1)) <= value < 1 << (bits - 1):
   raise FieldOverflowError('Cannot fit value into a %d bit integer' % bits)
  return value

 text = field.lstrip(b' ')
 for i, c in enumerate(text):
  if c in b'\0 ':
   text = text[:i]
   break
 if not text:
  return None
 try:
  return int(text, 8)
 except ValueError as e:
  raise HeaderError('Invalid octal number %r' % text) from e

def fitsOctal(value, length):
 return 0 <= value < 8 ** (length - 1)

def fitsGnuNumber(value, length):
 # negative values keep the 0x40 sign bit of the first byte set
 return -(1 << (length * 8 - 2)) <= value < 1 << ((length - 1) * 8)

def encodeNumber(value, block, offset, length):
 """Writes a zero padded, NUL terminated octal number"""
 if value < 0:
  raise FieldRangeError('Negative values are not allowed in tar headers')
 if not fitsOctal(value, length):
  raise FieldRangeError('%d does not fit into %d octal digits' % (value, length - 1))
 block[offset:offset+length] = ('%0*o' % (length - 1, value)).encode('ascii') + b'\0'

def encodeGnuNumber(value, block, offset, length):
 """Writes an octal number, or the base-256 form if octal cannot hold it"""
 if fitsOctal(value, length):
  encodeNumber(value, block, offset, length)
 elif not fitsGnuNumber(value, length):
  raise FieldRangeError('%d does not fit into a %d byte field' % (value, length))
 elif value < 0:
  block[offset:offset+length] = value.to_bytes(length, 'big', signed=True)
 else:
  block[offset:offset+length] = b'\x80' + value.to_bytes(length - 1, 'big')

def checksum(block):
 """The unsigned sum of a header block, counting the checksum field as spaces"""
 return sum(block[:chksumOffset]) + chksumLength * ord(' ') + sum(block[chksumOffset+chksumLength:blockSize])

def setChecksum(block):
 encodeNumber(checksum(block), block, chksumOffset, chksumLength - 1)
 block[chksumOffset+chksumLength-1] = ord(' ')

def verifyChecksum(block):
 try:
  stored = decodeNumber(block, chksumOffset, chksumLength, 32)
 except (HeaderError, FieldOverflowError) as e:
  raise ChecksumError('The checksum field is unreadable') from e
 if stored != checksum(block):
  raise ChecksumError('The checksum did not validate correctly')

def isZeroBlock(block):
 return block.count(0) == len(block)
