"""A streaming codec for tar archives"""

from collections import namedtuple
from stat import *

from .constants import *
from .entry import *
from .errors import *
from .fields import *
from .gnu import *
from .pax import *
from .reader import *
from .writer import *

UnixFile = namedtuple('UnixFile', 'path, size, mtime, mode, uid, gid, contents')

def _convertFileType(type):
 return {
  typeRegular: S_IFREG,
  typeRegularOld: S_IFREG,
  typeContiguous: S_IFREG,
  typeHardLink: S_IFREG,
  typeSymLink: S_IFLNK,
  typeCharDevice: S_IFCHR,
  typeBlockDevice: S_IFBLK,
  typeDirectory: S_IFDIR,
  typeFifo: S_IFIFO,
 }.get(type, S_IFREG)

def fileMode(entry):
 """The st_mode of an entry: its file type bits and permissions"""
 return _convertFileType(entry.typeflag) | (entry.mode or 0)

def isTar(file):
 """Returns true if the file provided starts with a valid tar header"""
 file.seek(0)
 block = file.read(blockSize)
 if len(block) < blockSize or isZeroBlock(block):
  return False
 try:
  verifyChecksum(block)
 except ChecksumError:
  return False
 return True

def readTar(file):
 """Unpacks a tar archive and yields the contained files.
 The contents of a file can only be read until the next one is requested."""
 file.seek(0)
 tar = TarReader(file)
 for entry in tar:
  yield UnixFile(
   path = '/' + entry.name.lstrip('/'),
   size = entry.size or 0,
   mtime = entry.mtime.toTimestamp() if entry.mtime else 0,
   mode = fileMode(entry),
   uid = entry.uid,
   gid = entry.gid,
   contents = tar if entry.isRegularFile() or entry.isSparse() else None,
  )
