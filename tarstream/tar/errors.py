"""Exceptions raised while reading or writing tar archives"""

class TarError(Exception):
 pass


class ChecksumError(TarError):
 """A header block failed checksum validation"""
 pass


class HeaderError(TarError):
 """A header block or extended header could not be decoded"""
 pass


class FormatError(TarError):
 """An entry cannot be represented in its target format"""
 pass


class FieldEncodingError(TarError, ValueError):
 pass


class FieldRangeError(TarError, ValueError):
 pass


class FieldOverflowError(TarError, OverflowError):
 pass


class SizeError(TarError):
 """More payload was written than the entry declares"""
 pass


class TruncatedArchiveError(TarError, EOFError):
 pass
