"""A streaming reader for V7, USTAR, pax and GNU tar archives"""

from collections import OrderedDict, deque
import threading

from .constants import *
from .entry import *
from .errors import *
from .fields import *
from .gnu import *
from .pax import *
from ..io import *
from ..util import *

def _decodeMode(block):
 mode = decodeNumber(block, modeOffset, modeLength, 32)
 # some writers leave the file type bits in the mode field
 return mode & maxMode if mode is not None else None

def _decodeTime(block, offset, length):
 seconds = decodeNumber(block, offset, length)
 return TarTime(seconds) if seconds is not None else None

def _isSchily(block):
 if decodeString(block, schilyXmagicOffset, schilyXmagicLength) == schilyXmagic:
  return True
 atime0 = block[schilyAtimeOffset]
 ctime0 = block[schilyCtimeOffset]
 return (block[prefixOffset + schilyPrefixLength - 1] == ord(' ')
  and ord('0') <= atime0 <= ord('7') and ord('0') <= ctime0 <= ord('7')
  and block[schilyAtimeOffset + 11] == ord(' ') and block[schilyCtimeOffset + 11] == ord(' '))

def headerLayout(block):
 """Tells which header layout a block uses: v7, ustar, schily or gnu"""
 magic = decodeString(block, magicOffset, gnuMagicLength)
 if magic == gnuMagic:
  return 'gnu'
 elif magic == ustarMagic and decodeString(block, versionOffset, versionLength) == ustarVersion:
  return 'schily' if _isSchily(block) else 'ustar'
 else:
  return 'v7'


class TarReader(object):
 """Reads the entries of a tar archive from a file-like object.

 Call getNextEntry() to advance to the next member, then read() its payload.
 Sparse files are returned with their holes filled with zero bytes."""

 def __init__(self, file, blockSize=defaultBlockSize):
  self._lock = threading.RLock()
  self._in = BlockReader(file, blockSize)
  self._globalHeader = OrderedDict()
  self._closed = False
  self._archiveEOF = False
  self._entry = None
  self._resetPayload()

 def _resetPayload(self):
  self._position = 0
  self._remainingData = 0
  self._remainingStored = 0
  self._remainingRecord = 0
  self._holes = deque()

 def _ensureOpen(self):
  if self._closed:
   raise ValueError('I/O operation on a closed archive')

 def __enter__(self):
  return self

 def __exit__(self, *args):
  self.close()

 def __iter__(self):
  while True:
   entry = self.getNextEntry()
   if entry is None:
    return
   yield entry

 @synchronized
 def getNextEntry(self):
  """Advances to the next entry. Returns None at the end of the archive"""
  self._ensureOpen()
  if self._archiveEOF:
   return None
  if self._entry is not None:
   self.closeEntry()
  try:
   entry = self._readEntry()
   if entry is not None:
    self._startPayload(entry)
  except TarError:
   self._archiveEOF = True
   raise
  if entry is None:
   self._archiveEOF = True
  self._entry = entry
  return entry

 @synchronized
 def closeEntry(self):
  """Skips the unread payload and padding of the current entry"""
  self._ensureOpen()
  if self._remainingRecord > 0 and self._in.skip(self._remainingRecord) < self._remainingRecord:
   raise TruncatedArchiveError('Unexpected end of archive in entry payload')
  self._resetPayload()
  self._entry = None

 @synchronized
 def read(self, n=-1):
  """Reads up to n bytes of the current entry's payload"""
  self._ensureOpen()
  if n < 0:
   n = self._remainingData
  chunks = []
  while n > 0 and self._remainingData > 0:
   data = self._readChunk(n)
   chunks.append(data)
   n -= len(data)
  return b''.join(chunks)

 @synchronized
 def skip(self, n):
  self._ensureOpen()
  skipped = 0
  while skipped < n and self._remainingData > 0:
   skipped += self._readChunk(n - skipped, keep=False)
  return skipped

 @synchronized
 def available(self):
  """The number of payload bytes that can be returned without blocking"""
  self._ensureOpen()
  if self._remainingData == 0:
   return 0
  if self._holes and self._holes[0][0] == self._position:
   return min(self._holes[0][1], self._remainingData)
  n = min(self._in.available(), self._remainingStored, self._remainingData)
  if self._holes:
   n = min(n, self._holes[0][0] - self._position)
  return n

 @synchronized
 def close(self):
  if not self._closed:
   self._in.close()
   self._closed = True

 def _readChunk(self, n, keep=True):
  n = min(n, self._remainingData)
  if self._holes and self._holes[0][0] == self._position:
   hole = self._holes[0]
   ct = min(n, hole[1])
   hole[0] += ct
   hole[1] -= ct
   if hole[1] == 0:
    self._holes.popleft()
   data = bytes(ct) if keep else None
  else:
   if self._holes:
    n = min(n, self._holes[0][0] - self._position)
   n = min(n, self._remainingStored)
   if n <= 0:
    raise HeaderError('The sparse map does not match the stored data')
   if keep:
    data = self._in.read(n)
    ct = len(data)
   else:
    data = None
    ct = self._in.skip(n)
   if ct < n:
    raise TruncatedArchiveError('Unexpected end of archive in entry payload')
   self._remainingStored -= ct
   self._remainingRecord -= ct
  self._position += ct
  self._remainingData -= ct
  return data if keep else ct

 def _readBlock(self):
  """Returns the next 512 byte block, or None at a clean end of stream"""
  block = self._in.read(blockSize)
  if not block:
   return None
  if len(block) < blockSize:
   raise TruncatedArchiveError('Unexpected end of archive in a header block')
  return block

 def _readRequiredBlock(self):
  block = self._readBlock()
  if block is None:
   raise TruncatedArchiveError('Unexpected end of archive in an extended header')
  return block

 def _readExtensionData(self, block):
  size = decodeNumber(block, sizeOffset, sizeLength)
  if size is None:
   raise HeaderError('Unknown size on extended header')
  padded = roundUp(size, blockSize)
  data = self._in.read(padded)
  if len(data) < padded:
   raise TruncatedArchiveError('Unexpected end of archive in an extended header')
  return data[:size]

 def _readPayloadBlock(self):
  if self._remainingStored < blockSize:
   raise HeaderError('The sparse map is larger than the stored data')
  block = self._in.read(blockSize)
  if len(block) < blockSize:
   raise TruncatedArchiveError('Unexpected end of archive in a sparse map')
  self._remainingStored -= blockSize
  self._remainingRecord -= blockSize
  return block

 def _readHeader(self):
  block = self._readBlock()
  if block is None:
   return None
  if isZeroBlock(block):
   block = self._readBlock()
   if block is None or isZeroBlock(block):
    return None
   raise HeaderError('Single zero block before the end of the archive')
  verifyChecksum(block)
  return block

 def _readEntry(self):
  self._paxRecords = None
  self._longName = None
  self._longLink = None
  self._sparse = None
  while True:
   block = self._readHeader()
   if block is None:
    if self._paxRecords is not None or self._longName is not None or self._longLink is not None:
     raise TruncatedArchiveError('Unexpected end of archive after an extended header')
    return None
   typeflag = chr(block[typeflagOffset])
   layout = headerLayout(block)
   decode = self._decoders.get((layout, typeflag), self._decoders[(layout, None)])
   entry = decode(self, block)
   if entry is not None:
    return self._finishEntry(entry)

 def _finishEntry(self, entry):
  if self._globalHeader or self._paxRecords is not None:
   records = mergeRecords(OrderedDict(self._globalHeader), self._paxRecords or {})
   sparse = takeSparseRecords(records)
   if sparse is not None:
    self._sparse = sparse
   applyPaxHeaders(entry, records)
  if self._longName is not None:
   entry.name = self._longName
  if self._longLink is not None:
   entry.linkname = self._longLink
  if self._sparse is not None and self._sparse.name is not None:
   entry.name = self._sparse.name
  return entry

 def _startPayload(self, entry):
  self._resetPayload()
  if entry.typeflag in payloadlessTypes:
   return
  stored = entry.size or 0
  self._remainingStored = stored
  self._remainingRecord = roundUp(stored, blockSize)
  self._remainingData = stored
  if self._sparse is not None:
   dataMap = self._sparse.dataMap
   if self._sparse.inPayload:
    dataMap, consumed = readSparseMap(self._readPayloadBlock)
   realSize = self._sparse.realSize if self._sparse.realSize is not None else self._remainingStored
   self._holes = deque(holesFromDataMap(dataMap, realSize))
   self._remainingData = realSize
   entry.size = realSize

 def _decodeV7(self, block):
  entry = TarEntry(decodeString(block, nameOffset, nameLength))
  entry.mode = _decodeMode(block)
  entry.uid = decodeNumber(block, uidOffset, uidLength, 32)
  entry.gid = decodeNumber(block, gidOffset, gidLength, 32)
  entry.size = decodeNumber(block, sizeOffset, sizeLength)
  entry.mtime = _decodeTime(block, mtimeOffset, mtimeLength)
  entry.chksum = decodeNumber(block, chksumOffset, chksumLength, 32)
  entry.typeflag = chr(block[typeflagOffset])
  entry.linkname = decodeString(block, linknameOffset, linknameLength)
  entry.format = TarFormat.V7
  return entry

 def _decodeUstarFields(self, block, format, prefixLength):
  entry = self._decodeV7(block)
  entry.format = format
  entry.magic = decodeString(block, magicOffset, magicLength)
  entry.version = decodeString(block, versionOffset, versionLength)
  entry.uname = decodeString(block, unameOffset, unameLength)
  entry.gname = decodeString(block, gnameOffset, gnameLength)
  entry.devmajor = decodeNumber(block, devmajorOffset, devmajorLength, 32)
  entry.devminor = decodeNumber(block, devminorOffset, devminorLength, 32)
  if prefixLength:
   prefix = decodeString(block, prefixOffset, prefixLength)
   if prefix:
    entry.name = prefix + '/' + entry.name
  return entry

 def _decodeUstar(self, block):
  return self._decodeUstarFields(block, TarFormat.PAX, prefixLength)

 def _decodeSchily(self, block):
  # star's atime and ctime fields are not decoded
  return self._decodeUstarFields(block, TarFormat.PAX, schilyPrefixLength - 1)

 def _decodeGnu(self, block):
  entry = self._decodeUstarFields(block, TarFormat.GNU, 0)
  entry.magic = decodeString(block, magicOffset, gnuMagicLength)
  entry.version = None
  entry.atime = _decodeTime(block, gnuAtimeOffset, gnuAtimeLength)
  entry.ctime = _decodeTime(block, gnuCtimeOffset, gnuCtimeLength)
  return entry

 def _decodeGnuSparse(self, block):
  entry = self._decodeGnu(block)
  self._sparse = readSparseHeader(block, self._readRequiredBlock)
  return entry

 def _decodeLongName(self, block):
  self._longName = decodeLongLink(self._readExtensionData(block))

 def _decodeLongLink(self, block):
  self._longLink = decodeLongLink(self._readExtensionData(block))

 def _decodePaxHeader(self, block):
  records = parseRecords(self._readExtensionData(block))
  if self._paxRecords is None:
   self._paxRecords = OrderedDict()
  self._paxRecords.update(records)

 def _decodePaxGlobal(self, block):
  mergeRecords(self._globalHeader, parseRecords(self._readExtensionData(block)))

 _decoders = {
  ('v7', None): _decodeV7,
  ('ustar', None): _decodeUstar,
  ('ustar', typePaxHeader): _decodePaxHeader,
  ('ustar', typePaxGlobal): _decodePaxGlobal,
  ('schily', None): _decodeSchily,
  ('gnu', None): _decodeGnu,
  ('gnu', typeGnuLongName): _decodeLongName,
  ('gnu', typeGnuLongLink): _decodeLongLink,
  ('gnu', typeGnuSparse): _decodeGnuSparse,
 }
