"""The metadata of a single archive member"""

from collections import namedtuple
import enum
import math
from stat import *

from .constants import *

permissionBits = (S_IRUSR, S_IWUSR, S_IXUSR, S_IRGRP, S_IWGRP, S_IXGRP, S_IROTH, S_IWOTH, S_IXOTH)


class TarFormat(enum.Enum):
 V7 = 'v7'
 USTAR = 'ustar'
 PAX = 'pax'
 GNU = 'gnu'

formatStamps = {
 TarFormat.V7: (None, None),
 TarFormat.USTAR: (ustarMagic, ustarVersion),
 TarFormat.PAX: (ustarMagic, ustarVersion),
 TarFormat.GNU: (gnuMagic, None),
}


class TarTime(namedtuple('TarTime', 'seconds, nanos')):
 """A point in time with nanosecond precision. nanos is always in [0, 10**9)"""
 __slots__ = ()

 def __new__(cls, seconds, nanos=0):
  extra, nanos = divmod(nanos, 10 ** 9)
  return super(TarTime, cls).__new__(cls, seconds + extra, nanos)

 @classmethod
 def fromTimestamp(cls, t):
  seconds = math.floor(t)
  return cls(seconds, int(round((t - seconds) * 1e9)))

 def toTimestamp(self):
  return self.seconds + self.nanos / 1e9


class _TimeField(object):
 def __init__(self, name):
  self.attr = '_' + name

 def __get__(self, obj, type=None):
  if obj is None:
   return self
  return getattr(obj, self.attr)

 def __set__(self, obj, value):
  if value is not None and not isinstance(value, TarTime):
   value = TarTime.fromTimestamp(value)
  setattr(obj, self.attr, value)


class TarEntry(object):
 """One archive member. Unset fields are None"""
 mergedFields = ('name', 'mode', 'uid', 'gid', 'size', 'mtime', 'atime', 'ctime', 'linkname', 'uname', 'gname', 'devmajor', 'devminor', 'charset', 'comment')
 copiedFields = mergedFields + ('typeflag', 'chksum', 'format', 'magic', 'version')

 mtime = _TimeField('mtime')
 atime = _TimeField('atime')
 ctime = _TimeField('ctime')

 def __init__(self, name=None, **kwargs):
  self.name = name
  self.mode = None
  self.uid = None
  self.gid = None
  self.size = None
  self.mtime = None
  self.atime = None
  self.ctime = None
  self.chksum = None
  self.typeflag = None
  self.linkname = None
  self.uname = None
  self.gname = None
  self.devmajor = None
  self.devminor = None
  self.charset = None
  self.comment = None
  self.extraHeaders = {}
  self.format = TarFormat.PAX
  for key, value in kwargs.items():
   if key not in self.copiedFields + ('extraHeaders',):
    raise TypeError('Unknown entry field %r' % key)
   setattr(self, key, value)

 @property
 def mode(self):
  return self._mode

 @mode.setter
 def mode(self, mode):
  if mode is not None and not 0 <= mode <= maxMode:
   raise ValueError('invalid mode %r' % mode)
  self._mode = mode

 @property
 def size(self):
  return self._size

 @size.setter
 def size(self, size):
  if size is not None and size < 0:
   raise ValueError('Cannot support negative size')
  self._size = size

 @property
 def format(self):
  return self._format

 @format.setter
 def format(self, format):
  """Switching the format also resets magic and version"""
  self._format = TarFormat(format)
  self.magic, self.version = formatStamps[self._format]

 @property
 def permissions(self):
  if self.mode is None:
   return None
  return frozenset(bit for bit in permissionBits if self.mode & bit)

 @permissions.setter
 def permissions(self, permissions):
  mode = 0
  for bit in permissions or ():
   mode |= bit
  self.mode = mode if permissions else None

 def copy(self):
  entry = TarEntry()
  for key in self.copiedFields:
   setattr(entry, key, getattr(self, key))
  entry.extraHeaders = dict(self.extraHeaders)
  return entry

 def applyEntry(self, other):
  """Fills the fields that are unset on this entry from other"""
  if other is None:
   return self
  for key in self.mergedFields:
   value = getattr(other, key)
   if value is not None and getattr(self, key) is None:
    setattr(self, key, value)
  for key, value in other.extraHeaders.items():
   self.extraHeaders.setdefault(key, value)
  return self

 def mergeEntry(self, other):
  """Overwrites the fields of this entry with every field set on other"""
  for key in self.mergedFields:
   value = getattr(other, key)
   if value is not None:
    setattr(self, key, value)
  self.extraHeaders.update(other.extraHeaders)
  return self

 def isRegularFile(self):
  return self.typeflag in regularTypes

 def isHardLink(self):
  return self.typeflag == typeHardLink

 def isSymbolicLink(self):
  return self.typeflag == typeSymLink

 def isDirectory(self):
  return self.typeflag == typeDirectory

 def isCharDevice(self):
  return self.typeflag == typeCharDevice

 def isBlockDevice(self):
  return self.typeflag == typeBlockDevice

 def isFifo(self):
  return self.typeflag == typeFifo

 def isSparse(self):
  """Old GNU sparse file. Its payload reads back with the holes filled"""
  return self.typeflag == typeGnuSparse

 def __repr__(self):
  return '<TarEntry %r type=%r size=%r format=%s>' % (self.name, self.typeflag, self.size, self.format.value)
