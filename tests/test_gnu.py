from collections import OrderedDict

import pytest

from tarstream.tar import *


def test_long_link_payload():
 assert encodeLongLink('a/b') == b'a/b\0'
 assert decodeLongLink(b'a/b\0\0\0') == 'a/b'
 assert decodeLongLink(encodeLongLink('caf\xe9')) == 'caf\xe9'

@pytest.mark.parametrize('dataMap, realSize, holes', [
 ([(0, 3), (8, 2)], 10, [[3, 5]]),
 ([(2, 3)], 10, [[0, 2], [5, 5]]),
 ([(0, 3), (3, 2)], 5, []),
 ([(8, 2), (0, 3)], 12, [[3, 5], [10, 2]]),
 ([], 4, [[0, 4]]),
 ([(0, 4)], None, []),
])
def test_holes_from_data_map(dataMap, realSize, holes):
 assert holesFromDataMap(dataMap, realSize) == holes

def _slots(pairs, count):
 data = bytearray(count * 24)
 for i, (offset, length) in enumerate(pairs):
  encodeNumber(offset, data, i * 24, 12)
  encodeNumber(length, data, i * 24 + 12, 12)
 return data

def test_read_sparse_slots_stops_at_empty_slot():
 data = _slots([(0, 3), (8, 2)], 4)
 assert readSparseSlots(data, 0, 4) == [(0, 3), (8, 2)]

def test_read_sparse_header_with_extension():
 block = bytearray(blockSize)
 block[gnuSparseOffset:gnuSparseOffset+96] = _slots([(0, 1), (2, 1), (4, 1), (6, 1)], 4)
 block[gnuIsExtendedOffset] = 1
 encodeNumber(100, block, gnuRealSizeOffset, gnuRealSizeLength)

 ext1 = bytearray(blockSize)
 ext1[:504] = _slots([(8 + 2 * i, 1) for i in range(21)], 21)
 ext1[gnuSparseExtIsExtendedOffset] = 1
 ext2 = bytearray(blockSize)
 ext2[:48] = _slots([(90, 1), (99, 1)], 2)
 blocks = [bytes(ext1), bytes(ext2)]

 info = readSparseHeader(block, lambda: blocks.pop(0))
 assert not blocks
 assert info.realSize == 100
 assert info.name is None
 assert not info.inPayload
 assert len(info.dataMap) == 27
 assert info.dataMap[:5] == [(0, 1), (2, 1), (4, 1), (6, 1), (8, 1)]
 assert info.dataMap[-2:] == [(90, 1), (99, 1)]

def test_sparse_records_version_01():
 records = OrderedDict([
  ('path', 'x'),
  ('GNU.sparse.map', '0,3,8,2'),
  ('GNU.sparse.size', '10'),
  ('GNU.sparse.name', 'real.bin'),
 ])
 info = takeSparseRecords(records)
 assert info == SparseInfo([(0, 3), (8, 2)], 10, 'real.bin', False)
 assert records == {'path': 'x'}

def test_sparse_records_version_10():
 records = OrderedDict([
  ('GNU.sparse.major', '1'),
  ('GNU.sparse.minor', '0'),
  ('GNU.sparse.realsize', '10'),
  ('GNU.sparse.name', 'real.bin'),
 ])
 info = takeSparseRecords(records)
 assert info == SparseInfo(None, 10, 'real.bin', True)
 assert records == {}

def test_sparse_records_absent():
 records = {'GNU.sparse.offset': '0', 'GNU.sparse.numbytes': '3'}
 assert takeSparseRecords(records) is None
 assert len(records) == 2

def test_sparse_records_odd_map():
 with pytest.raises(HeaderError):
  takeSparseRecords({'GNU.sparse.map': '0,3,8'})

def test_read_sparse_map():
 data = b'2\n0\n3\n8\n2\n'
 blocks = [data + bytes(blockSize - len(data))]
 assert readSparseMap(lambda: blocks.pop(0)) == ([(0, 3), (8, 2)], blockSize)

def test_read_sparse_map_spanning_blocks():
 data = b'%d\n' % 200 + b''.join(b'%d\n%d\n' % (i * 10, 5) for i in range(200))
 padded = data + bytes(roundUp(len(data), blockSize) - len(data))
 blocks = [padded[i:i+blockSize] for i in range(0, len(padded), blockSize)]
 count = len(blocks)
 dataMap, consumed = readSparseMap(lambda: blocks.pop(0))
 assert consumed == count * blockSize
 assert dataMap[0] == (0, 5)
 assert dataMap[-1] == (1990, 5)
 assert len(dataMap) == 200
