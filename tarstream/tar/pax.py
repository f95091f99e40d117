"""POSIX extended header records (pax)"""

from collections import OrderedDict
import codecs
import decimal
import re

from .entry import *
from .errors import *

standardKeys = ('path', 'linkpath', 'size', 'uid', 'gid', 'uname', 'gname', 'mtime', 'atime', 'ctime', 'comment', 'charset', 'hdrcharset')

charsetNames = OrderedDict([
 ('ISO-IR 646 1900', 'ascii'),
 ('ISO-IR 8859 1 1998', 'iso8859-1'),
 ('ISO-IR 8859 2 1999', 'iso8859-2'),
 ('ISO-IR 8859 3 1999', 'iso8859-3'),
 ('ISO-IR 8859 4 1998', 'iso8859-4'),
 ('ISO-IR 8859 5 1999', 'iso8859-5'),
 ('ISO-IR 8859 6 1999', 'iso8859-6'),
 ('ISO-IR 8859 7 1987', 'iso8859-7'),
 ('ISO-IR 8859 8 1999', 'iso8859-8'),
 ('ISO-IR 8859 9 1999', 'iso8859-9'),
 ('ISO-IR 8859 10 1998', 'iso8859-10'),
 ('ISO-IR 8859 13 1998', 'iso8859-13'),
 ('ISO-IR 8859 14 1998', 'iso8859-14'),
 ('ISO-IR 8859 15 1999', 'iso8859-15'),
])

_recordPrefix = re.compile(br'(\d+) ')

def charsetFromString(name):
 """Maps a pax charset identifier to a Python codec name, None if unknown"""
 return charsetNames.get(name)

def stringFromCharset(charset):
 if charset is None:
  return None
 try:
  charset = codecs.lookup(charset).name
 except LookupError:
  return None
 for name, codec in charsetNames.items():
  if codec == charset:
   return name
 return None

def makeRecord(key, value):
 """Frames a key=value pair. The length prefix counts its own digits"""
 payload = (' %s=%s\n' % (key, value)).encode('utf-8', 'surrogateescape')
 length = len(payload)
 digits = len(str(length))
 while digits != len(str(length + digits)):
  digits = len(str(length + digits))
 return str(length + digits).encode('ascii') + payload

def parseRecords(data):
 """Parses the payload of an extended header into an ordered dict"""
 records = OrderedDict()
 pos = 0
 while pos < len(data) and data[pos] != 0:
  match = _recordPrefix.match(data, pos)
  if not match:
   raise HeaderError('Unknown extended header format')
  length = int(match.group(1))
  if length == 0:
   break
  end = pos + length
  if end > len(data) or end <= match.end() or data[end-1:end] != b'\n':
   raise HeaderError('Extended header record has a wrong length')
  key, sep, value = data[match.end():end-1].partition(b'=')
  if not sep:
   raise HeaderError('Extended header record without a value')
  records[key.decode('utf-8', 'surrogateescape')] = value.decode('utf-8', 'surrogateescape')
  pos = end
 return records

def mergeRecords(target, records):
 """Layers records onto target. An empty value removes the key"""
 for key, value in records.items():
  if value == '':
   target.pop(key, None)
  else:
   target[key] = value
 return target

def parseTime(value):
 """Parses decimal seconds into a TarTime, rounding down to whole nanoseconds"""
 try:
  time = decimal.Decimal(value)
 except decimal.InvalidOperation as e:
  raise HeaderError('Cannot parse file time %r' % value) from e
 if not time.is_finite():
  raise HeaderError('Cannot parse file time %r' % value)
 with decimal.localcontext() as ctx:
  ctx.prec = max(ctx.prec, len(value) + 10)
  seconds = int(time.to_integral_value(rounding=decimal.ROUND_FLOOR))
  nanos = int(((time - seconds) * 10 ** 9).to_integral_value(rounding=decimal.ROUND_FLOOR))
 return TarTime(seconds, nanos)

def formatTime(time):
 if not time.nanos:
  return '%d' % time.seconds
 with decimal.localcontext() as ctx:
  ctx.prec = 40
  text = format(decimal.Decimal(time.seconds) + decimal.Decimal(time.nanos).scaleb(-9), 'f')
 return text.rstrip('0').rstrip('.')

def _parseInt(value):
 try:
  return int(value)
 except ValueError as e:
  raise HeaderError('Invalid number %r in extended header' % value) from e

def _parseSize(value):
 size = _parseInt(value)
 if size < 0:
  raise HeaderError('Negative size %r in extended header' % value)
 return size

paxDecoders = {
 'path': ('name', str),
 'linkpath': ('linkname', str),
 'uname': ('uname', str),
 'gname': ('gname', str),
 'comment': ('comment', str),
 'size': ('size', _parseSize),
 'uid': ('uid', _parseInt),
 'gid': ('gid', _parseInt),
 'mtime': ('mtime', parseTime),
 'atime': ('atime', parseTime),
 'ctime': ('ctime', parseTime),
}

def applyPaxHeaders(entry, records):
 """Overwrites the typed fields of entry. Unknown keys go to extraHeaders"""
 for key, value in records.items():
  if key in paxDecoders:
   attr, decode = paxDecoders[key]
   setattr(entry, attr, decode(value))
  elif key == 'charset':
   charset = charsetFromString(value)
   if charset is not None:
    entry.charset = charset
   else:
    entry.extraHeaders[key] = value
  elif key != 'hdrcharset':
   entry.extraHeaders[key] = value
 return entry
