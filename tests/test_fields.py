import pytest

from tarstream.tar.constants import *
from tarstream.tar.errors import *
from tarstream.tar.fields import *


def test_decode_string_stops_at_nul():
 assert decodeString(b'abc\0def', 0, 7) == 'abc'
 assert decodeString(b'xxabcdef', 2, 3) == 'abc'

def test_decode_string_replaces_non_ascii():
 assert decodeString(b'caf\xe9\0', 0, 5) == 'caf\ufffd'

def test_encode_string_pads_with_nul():
 block = bytearray(b'\xff' * 10)
 encodeString('abc', block, 2, 6)
 assert bytes(block) == b'\xff\xffabc\0\0\0\xff\xff'

def test_encode_string_errors():
 block = bytearray(blockSize)
 with pytest.raises(FieldEncodingError):
  encodeString('caf\xe9', block, 0, 100)
 with pytest.raises(FieldEncodingError):
  encodeString('a' * 101, block, 0, 100)
 with pytest.raises(FieldEncodingError):
  encodeString('a' * 100, block, 0, 100, True)
 encodeString('a' * 100, block, 0, 100)
 assert bytes(block[:100]) == b'a' * 100

def test_encoding_error_is_a_value_error():
 with pytest.raises(ValueError):
  encodeString('☃', bytearray(8), 0, 8)

def test_truncate_string():
 assert truncateString('h\xe9llo', 4) == 'h?ll'
 assert fitsString('hello', 5)
 assert not fitsString('hello', 4)
 assert not fitsString('h\xe9', 10)


def test_decode_octal():
 assert decodeNumber(b'0000644\0', 0, 8) == 0o644
 assert decodeNumber(b'  644 \0\0', 0, 8) == 0o644
 assert decodeNumber(b'00000000012\0', 0, 12) == 10

def test_decode_empty_field():
 assert decodeNumber(bytes(8), 0, 8) is None
 assert decodeNumber(b'    \0\0\0\0', 0, 8) is None

def test_decode_invalid_octal():
 with pytest.raises(HeaderError):
  decodeNumber(b'0000900\0', 0, 8)

def test_encode_octal():
 block = bytearray(8)
 encodeNumber(0o644, block, 0, 8)
 assert bytes(block) == b'0000644\0'

def test_encode_octal_range():
 block = bytearray(8)
 with pytest.raises(FieldRangeError):
  encodeNumber(-1, block, 0, 8)
 with pytest.raises(FieldRangeError):
  encodeNumber(8 ** 7, block, 0, 8)
 with pytest.raises(ValueError):
  encodeNumber(8 ** 7, block, 0, 8)
 encodeNumber(8 ** 7 - 1, block, 0, 8)
 assert bytes(block) == b'7777777\0'

def test_gnu_number_prefers_octal():
 block = bytearray(12)
 encodeGnuNumber(10, block, 0, 12)
 assert bytes(block) == b'00000000012\0'

def test_gnu_number_large_positive():
 block = bytearray(12)
 encodeGnuNumber(2 ** 33, block, 0, 12)
 assert block[0] == 0x80
 assert bytes(block[1:]) == (2 ** 33).to_bytes(11, 'big')
 assert decodeNumber(block, 0, 12) == 2 ** 33

def test_gnu_number_negative():
 block = bytearray(12)
 encodeGnuNumber(-1, block, 0, 12)
 assert bytes(block) == b'\xff' * 12
 assert decodeNumber(block, 0, 12) == -1
 encodeGnuNumber(-300, block, 0, 12)
 assert decodeNumber(block, 0, 12) == -300

def test_gnu_number_range():
 with pytest.raises(FieldRangeError):
  encodeGnuNumber(1 << 56, bytearray(8), 0, 8)
 with pytest.raises(FieldRangeError):
  encodeGnuNumber(-(1 << 62) - 1, bytearray(8), 0, 8)
 assert fitsGnuNumber((1 << 56) - 1, 8)
 assert fitsGnuNumber(-(1 << 62), 8)
 assert not fitsGnuNumber(-(1 << 62) - 1, 8)
 assert not fitsGnuNumber(-(1 << 63), 8)

@pytest.mark.parametrize('value', [(1 << 56) - 1, -(1 << 62), -(1 << 61) - 7, 8 ** 7])
def test_gnu_number_bounds_round_trip(value):
 block = bytearray(8)
 encodeGnuNumber(value, block, 0, 8)
 assert decodeNumber(block, 0, 8) == value

def test_gnu_number_negative_sign_bit():
 block = bytearray(8)
 encodeGnuNumber(-(1 << 62), block, 0, 8)
 assert block[0] == 0xc0
 assert decodeNumber(block, 0, 8) == -(1 << 62)

def test_base256_overflow():
 field = b'\x80' + b'\xff' * 7
 with pytest.raises(FieldOverflowError):
  decodeNumber(field, 0, 8, 32)
 with pytest.raises(OverflowError):
  decodeNumber(field, 0, 8, 32)
 assert decodeNumber(field, 0, 8) == (1 << 56) - 1


def test_checksum_of_empty_block():
 block = bytearray(blockSize)
 assert checksum(block) == 8 * ord(' ')
 setChecksum(block)
 assert bytes(block[chksumOffset:chksumOffset+chksumLength]) == b'000400\0 '
 verifyChecksum(block)

def test_checksum_ignores_stored_value():
 block = bytearray(blockSize)
 block[0] = ord('a')
 before = checksum(block)
 setChecksum(block)
 assert checksum(block) == before

def test_checksum_mismatch():
 block = bytearray(blockSize)
 block[0] = ord('a')
 setChecksum(block)
 block[1] = ord('b')
 with pytest.raises(ChecksumError):
  verifyChecksum(block)

def test_checksum_empty_field():
 block = bytearray(blockSize)
 block[0] = ord('a')
 with pytest.raises(ChecksumError):
  verifyChecksum(block)

def test_checksum_garbage_field():
 block = bytearray(blockSize)
 block[chksumOffset:chksumOffset+8] = b'zzzzzzzz'
 with pytest.raises(ChecksumError):
  verifyChecksum(block)

def test_zero_block():
 assert isZeroBlock(bytes(blockSize))
 assert not isZeroBlock(bytes(blockSize - 1) + b'\1')
