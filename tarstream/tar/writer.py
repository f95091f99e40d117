"""A streaming writer for V7, USTAR, pax and GNU tar archives"""

from collections import OrderedDict
import posixpath
import shutil
import threading
import time

from .constants import *
from .entry import *
from .errors import *
from .fields import *
from .gnu import *
from .pax import *
from ..io import *
from ..util import *

def splitName(name):
 """Splits a path into the USTAR name and prefix fields.
 Returns (name, prefix), or None if no '/' boundary gives a fitting split."""
 if len(name.encode('utf-8')) <= nameLength:
  return name, ''
 pos = len(name)
 while True:
  pos = name.rfind('/', 0, pos)
  if pos <= 0:
   return None
  prefix, base = name[:pos], name[pos+1:]
  if len(base.encode('utf-8')) > nameLength:
   return None
  if base and len(prefix.encode('utf-8')) <= prefixLength:
   return base, prefix

def _padded(data):
 return data + bytes(roundUp(len(data), blockSize) - len(data))

def _seconds(t):
 return t.seconds if t is not None else 0

def _fitsField(text, length):
 return text.isascii() and len(text) <= length


def _checkRange(entry, names, limit):
 for name in names:
  value = getattr(entry, name)
  if isinstance(value, TarTime):
   value = value.seconds
  if value is not None and not 0 <= value <= limit:
   raise FormatError('%s out of range for the %s format' % (name, entry.format.value))

def _checkLength(entry, name, limit):
 value = getattr(entry, name)
 if value is not None and not _fitsField(value, limit):
  raise FormatError('%s is not ASCII or too long for the %s format' % (name, entry.format.value))

def _checkV7(entry):
 _checkLength(entry, 'name', nameLength - 1)
 if entry.typeflag not in v7Types:
  raise FormatError('Unsupported typeflag %r for the v7 format' % entry.typeflag)
 _checkRange(entry, ('uid', 'gid'), maxOctal7)
 _checkRange(entry, ('size', 'mtime'), maxOctal11)
 _checkLength(entry, 'linkname', linknameLength - 1)

def _checkUstar(entry):
 if not entry.name.isascii():
  raise FormatError('The name is not ASCII')
 if splitName(entry.name) is None:
  raise FormatError('The name is too long and can\'t be split to fit')
 _checkRange(entry, ('uid', 'gid', 'devmajor', 'devminor'), maxOctal7)
 _checkRange(entry, ('size', 'mtime'), maxOctal11)
 _checkLength(entry, 'linkname', linknameLength)
 _checkLength(entry, 'uname', unameLength)
 _checkLength(entry, 'gname', gnameLength)

def _checkPax(entry):
 _checkRange(entry, ('devmajor', 'devminor'), maxOctal7)
 if entry.charset is not None and stringFromCharset(entry.charset) is None:
  raise FormatError('Charset %r has no pax name' % entry.charset)

# the reader decodes ids and device numbers as 32 bit, sizes and times as 64 bit
_gnuFields = [
 ('uid', uidLength, 32),
 ('gid', gidLength, 32),
 ('size', sizeLength, 64),
 ('mtime', mtimeLength, 64),
 ('atime', gnuAtimeLength, 64),
 ('ctime', gnuCtimeLength, 64),
 ('devmajor', devmajorLength, 32),
 ('devminor', devminorLength, 32),
]

def _checkGnu(entry):
 for name, length, bits in _gnuFields:
  value = getattr(entry, name)
  if isinstance(value, TarTime):
   value = value.seconds
  if value is not None and not (fitsGnuNumber(value, length) and -(1 << (bits - 1)) <= value < 1 << (bits - 1)):
   raise FormatError('%s out of range for the gnu format' % name)
 _checkLength(entry, 'uname', unameLength)
 _checkLength(entry, 'gname', gnameLength)

_checkers = {
 TarFormat.V7: _checkV7,
 TarFormat.USTAR: _checkUstar,
 TarFormat.PAX: _checkPax,
 TarFormat.GNU: _checkGnu,
}

def checkEntry(entry):
 """Verifies that an entry can be written in its format. Raises FormatError"""
 if not entry.name:
  raise FormatError('The entry has no name')
 if entry.typeflag is None or len(entry.typeflag) != 1 or ord(entry.typeflag) > 0xff:
  raise FormatError('Invalid typeflag %r' % entry.typeflag)
 if entry.typeflag in (typeHardLink, typeSymLink) and entry.size:
  raise FormatError('The size for a link must be zero')
 _checkers[entry.format](entry)


def _v7Block(entry, name, encodeNum=encodeNumber):
 block = bytearray(blockSize)
 isV7 = entry.format is TarFormat.V7
 encodeString(name, block, nameOffset, nameLength, isV7)
 encodeNumber(entry.mode or 0, block, modeOffset, modeLength)
 encodeNum(entry.uid or 0, block, uidOffset, uidLength)
 encodeNum(entry.gid or 0, block, gidOffset, gidLength)
 encodeNum(entry.size or 0, block, sizeOffset, sizeLength)
 encodeNum(_seconds(entry.mtime), block, mtimeOffset, mtimeLength)
 block[typeflagOffset] = ord(entry.typeflag)
 encodeString(entry.linkname or '', block, linknameOffset, linknameLength, isV7)
 return block

def _ustarBlock(entry, name, prefix=''):
 block = _v7Block(entry, name)
 encodeString(ustarMagic, block, magicOffset, magicLength, True)
 encodeString(ustarVersion, block, versionOffset, versionLength)
 encodeString(entry.uname or '', block, unameOffset, unameLength)
 encodeString(entry.gname or '', block, gnameOffset, gnameLength)
 if entry.devmajor is not None:
  encodeNumber(entry.devmajor, block, devmajorOffset, devmajorLength)
 if entry.devminor is not None:
  encodeNumber(entry.devminor, block, devminorOffset, devminorLength)
 encodeString(prefix, block, prefixOffset, prefixLength)
 setChecksum(block)
 return block

def _gnuBlock(entry):
 block = _v7Block(entry, entry.name, encodeGnuNumber)
 encodeString(gnuMagic, block, magicOffset, gnuMagicLength, True)
 encodeString(entry.uname or '', block, unameOffset, unameLength)
 encodeString(entry.gname or '', block, gnameOffset, gnameLength)
 if entry.devmajor is not None:
  encodeGnuNumber(entry.devmajor, block, devmajorOffset, devmajorLength)
 if entry.devminor is not None:
  encodeGnuNumber(entry.devminor, block, devminorOffset, devminorLength)
 if entry.atime is not None:
  encodeGnuNumber(entry.atime.seconds, block, gnuAtimeOffset, gnuAtimeLength)
 if entry.ctime is not None:
  encodeGnuNumber(entry.ctime.seconds, block, gnuCtimeOffset, gnuCtimeLength)
 setChecksum(block)
 return block

def _extensionEntry(name, typeflag, size, format):
 return TarEntry(
  name,
  mode = extensionMode,
  uid = 0,
  gid = 0,
  size = size,
  mtime = int(time.time()),
  typeflag = typeflag,
  uname = extensionOwner,
  gname = extensionOwner,
  format = format,
 )

def encodeV7(entry):
 block = _v7Block(entry, entry.name)
 setChecksum(block)
 return bytes(block)

def encodeUstar(entry):
 name, prefix = splitName(entry.name)
 return bytes(_ustarBlock(entry, name, prefix))

def paxRecords(entry):
 """Collects the fields of entry that do not fit a USTAR header.
 Returns the records and a copy of entry with placeholder values."""
 records = OrderedDict()
 fixed = entry.copy()

 split = splitName(entry.name) if entry.name.isascii() else None
 if split is None:
  records['path'] = entry.name
  fixed.name = truncateString(entry.name, nameLength)
 for key, limit in [('uid', maxOctal7), ('gid', maxOctal7), ('size', maxOctal11)]:
  value = getattr(entry, key)
  if value is not None and not 0 <= value < limit:
   records[key] = str(value)
   setattr(fixed, key, limit if value > 0 else 0)
 if entry.mtime is not None and (not 0 <= entry.mtime.seconds < maxOctal11 or entry.mtime.nanos):
  records['mtime'] = formatTime(entry.mtime)
  fixed.mtime = min(max(entry.mtime.seconds, 0), maxOctal11)
 if entry.atime is not None:
  records['atime'] = formatTime(entry.atime)
 if entry.ctime is not None:
  records['ctime'] = formatTime(entry.ctime)
 for key, attr, length in [('linkpath', 'linkname', linknameLength), ('uname', 'uname', unameLength), ('gname', 'gname', gnameLength)]:
  value = getattr(entry, attr)
  if value is not None and not _fitsField(value, length):
   records[key] = value
   setattr(fixed, attr, truncateString(value, length))
 if entry.charset is not None:
  records['charset'] = stringFromCharset(entry.charset)
 if entry.comment:
  records['comment'] = entry.comment
 for key, value in entry.extraHeaders.items():
  if key not in standardKeys:
   records[key] = value
 return records, fixed

def _paxHeaderName(name):
 base = posixpath.basename(name.rstrip('/'))
 path = posixpath.join(posixpath.dirname(name.rstrip('/')), paxHeaderDir, base)
 return truncateString(path, nameLength)

def encodePax(entry):
 records, fixed = paxRecords(entry)
 if not records:
  return encodeUstar(entry)
 data = b''.join(makeRecord(key, value) for key, value in records.items())
 header = _extensionEntry(_paxHeaderName(entry.name), typePaxHeader, len(data), TarFormat.USTAR)
 split = splitName(fixed.name) if 'path' not in records else (fixed.name, '')
 return bytes(_ustarBlock(header, header.name)) + _padded(data) + bytes(_ustarBlock(fixed, *split))

def _longLinkEntry(typeflag, text):
 data = encodeLongLink(text)
 header = _extensionEntry(longLinkName, typeflag, len(data), TarFormat.GNU)
 return bytes(_gnuBlock(header)) + _padded(data)

def encodeGnu(entry):
 out = b''
 fixed = entry.copy()
 if not _fitsField(entry.name, nameLength):
  out += _longLinkEntry(typeGnuLongName, entry.name)
  fixed.name = truncateString(entry.name, nameLength)
 if entry.linkname and not _fitsField(entry.linkname, linknameLength):
  out += _longLinkEntry(typeGnuLongLink, entry.linkname)
  fixed.linkname = truncateString(entry.linkname, linknameLength)
 return out + bytes(_gnuBlock(fixed))

_encoders = {
 TarFormat.V7: encodeV7,
 TarFormat.USTAR: encodeUstar,
 TarFormat.PAX: encodePax,
 TarFormat.GNU: encodeGnu,
}

def encodeEntry(entry):
 """Returns all header blocks for entry, including extension records"""
 checkEntry(entry)
 return _encoders[entry.format](entry)


class TarWriter(object):
 """Writes a tar archive to a file-like object.

 Call putNewEntry() for each member and write() its payload. The archive is
 terminated with two zero blocks by finish() or close()."""

 def __init__(self, file, blockSize=defaultBlockSize):
  self._lock = threading.RLock()
  self._out = BlockWriter(file, blockSize)
  self._entry = None
  self._size = 0
  self._written = 0
  self._finished = False
  self._closed = False

 def _ensureOpen(self):
  if self._closed or self._finished:
   raise ValueError('I/O operation on a closed archive')

 def __enter__(self):
  return self

 def __exit__(self, *args):
  self.close()

 @synchronized
 def putNewEntry(self, entry):
  """Writes the header of a new entry, closing the current one first"""
  self._ensureOpen()
  self.closeEntry()
  entry = entry.copy()
  if entry.typeflag is None:
   entry.typeflag = typeRegular
  if entry.typeflag in zeroSizeWriteTypes:
   entry.size = 0
  self._out.write(encodeEntry(entry))
  self._entry = entry
  self._size = entry.size or 0
  self._written = 0

 @synchronized
 def write(self, data):
  self._ensureOpen()
  if self._entry is None:
   raise TarError('No entry is present')
  if self._written + len(data) > self._size:
   raise SizeError('This write creates a file that is larger than the entry provides')
  self._out.write(data)
  self._written += len(data)
  return len(data)

 @synchronized
 def addFile(self, entry, file=None):
  """Writes an entry and copies its payload from file"""
  self.putNewEntry(entry)
  if file is not None:
   shutil.copyfileobj(file, self)
  self.closeEntry()

 @synchronized
 def closeEntry(self):
  """Pads the current entry with zeros up to its size and the next block boundary"""
  if self._entry is not None:
   remaining = roundUp(self._size, blockSize) - self._written
   while remaining > 0:
    ct = min(remaining, self._out.blockSize)
    self._out.write(bytes(ct))
    remaining -= ct
  self._entry = None
  self._size = 0
  self._written = 0

 @synchronized
 def finish(self):
  """Terminates the archive without closing the underlying file"""
  if not self._finished and not self._closed:
   self.closeEntry()
   self._out.write(bytes(2 * blockSize))
   self._out.flush()
   self._finished = True

 @synchronized
 def close(self):
  if not self._closed:
   self.finish()
   self._out.close()
   self._closed = True
