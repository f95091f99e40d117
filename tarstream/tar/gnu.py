"""GNU tar extensions: long name records and sparse file maps"""

from collections import namedtuple

from .constants import *
from .errors import *
from .fields import *
from ..util import *

SparseInfo = namedtuple('SparseInfo', 'dataMap, realSize, name, inPayload')

GnuSparseSlot = Struct('GnuSparseSlot', [
 ('offset', Struct.STR % 12),
 ('numbytes', Struct.STR % 12),
])

GnuSparseExtension = Struct('GnuSparseExtension', [
 ('slots', Struct.STR % (gnuSparseExtSlots * GnuSparseSlot.size)),
 ('isExtended', Struct.STR % 1),
 ('...', 7),
])

sparseKeys = ('GNU.sparse.map', 'GNU.sparse.size', 'GNU.sparse.realsize', 'GNU.sparse.name', 'GNU.sparse.major', 'GNU.sparse.minor', 'GNU.sparse.numblocks')

def encodeLongLink(text):
 """The payload of an L or K record: UTF-8 text plus a NUL byte"""
 return text.encode('utf-8', 'surrogateescape') + b'\0'

def decodeLongLink(data):
 return data.rstrip(b'\0').decode('utf-8', 'surrogateescape')

def readSparseSlots(data, offset, count):
 """Reads (offset, numbytes) pairs until the first empty slot"""
 dataMap = []
 for i in range(count):
  slot = GnuSparseSlot.unpack(data, offset + i * GnuSparseSlot.size)
  start = decodeNumber(slot.offset, 0, len(slot.offset))
  length = decodeNumber(slot.numbytes, 0, len(slot.numbytes))
  if start is None or length is None:
   break
  dataMap.append((start, length))
 return dataMap

def readSparseHeader(block, readBlock):
 """Decodes the sparse map of an old GNU 'S' header and its extension blocks"""
 dataMap = readSparseSlots(block, gnuSparseOffset, gnuSparseSlots)
 isExtended = block[gnuIsExtendedOffset]
 while isExtended:
  ext = GnuSparseExtension.unpack(readBlock())
  dataMap += readSparseSlots(ext.slots, 0, gnuSparseExtSlots)
  isExtended = ext.isExtended != b'\0'
 realSize = decodeNumber(block, gnuRealSizeOffset, gnuRealSizeLength)
 return SparseInfo(dataMap, realSize, None, False)

def _parseNumber(value):
 try:
  return int(value)
 except ValueError as e:
  raise HeaderError('Invalid number %r in sparse map' % value) from e

def takeSparseRecords(records):
 """Removes the GNU sparse keys of pax versions 0.1 and 1.0 from records"""
 if records.get('GNU.sparse.major') == '1' and records.get('GNU.sparse.minor') == '0':
  inPayload = True
  dataMap = None
 elif 'GNU.sparse.map' in records:
  inPayload = False
  numbers = [_parseNumber(n) for n in records['GNU.sparse.map'].split(',') if n]
  if len(numbers) % 2:
   raise HeaderError('Sparse map has an odd number of values')
  dataMap = list(zip(numbers[0::2], numbers[1::2]))
 else:
  return None

 realSize = records.get('GNU.sparse.realsize', records.get('GNU.sparse.size'))
 info = SparseInfo(dataMap, _parseNumber(realSize) if realSize is not None else None, records.get('GNU.sparse.name'), inPayload)
 for key in sparseKeys:
  records.pop(key, None)
 return info

def readSparseMap(readBlock):
 """Reads the decimal sparse map at the start of a pax 1.0 sparse payload.
 Returns the map and the number of payload bytes it occupied."""
 data = b''
 consumed = 0
 while True:
  block = readBlock()
  consumed += len(block)
  data += block
  lines = data.split(b'\n')[:-1]
  if lines:
   count = _parseNumber(lines[0])
   if len(lines) > 2 * count:
    numbers = [_parseNumber(n) for n in lines[1:1+2*count]]
    return list(zip(numbers[0::2], numbers[1::2])), consumed

def holesFromDataMap(dataMap, realSize):
 """Converts a list of stored (offset, length) regions to the zero filled gaps between them"""
 holes = []
 pos = 0
 for offset, length in sorted(dataMap):
  if offset > pos:
   holes.append([pos, offset - pos])
  pos = max(pos, offset + length)
 if realSize is not None and realSize > pos:
  holes.append([pos, realSize - pos])
 return holes
