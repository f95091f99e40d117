from stat import *

import pytest

from tarstream.tar import *


def test_defaults():
 entry = TarEntry('a.txt')
 assert entry.name == 'a.txt'
 assert entry.size is None and entry.mode is None and entry.mtime is None
 assert entry.format is TarFormat.PAX
 assert (entry.magic, entry.version) == ('ustar', '00')
 assert entry.extraHeaders == {}

def test_format_resets_magic():
 entry = TarEntry('a')
 entry.format = TarFormat.GNU
 assert (entry.magic, entry.version) == ('ustar  ', None)
 entry.format = 'v7'
 assert entry.format is TarFormat.V7
 assert (entry.magic, entry.version) == (None, None)
 entry.format = TarFormat.USTAR
 assert (entry.magic, entry.version) == ('ustar', '00')

def test_invalid_fields():
 entry = TarEntry('a')
 with pytest.raises(ValueError):
  entry.mode = 0o10000
 with pytest.raises(ValueError):
  entry.mode = -1
 with pytest.raises(ValueError):
  entry.size = -1
 with pytest.raises(ValueError):
  entry.format = 'zip'
 with pytest.raises(TypeError):
  TarEntry('a', colour='red')

def test_time_normalisation():
 assert TarTime(1, 1500000000) == (2, 500000000)
 assert TarTime(0, -1) == (-1, 999999999)
 assert TarTime.fromTimestamp(1.5) == (1, 500000000)
 assert TarTime(3, 250000000).toTimestamp() == 3.25

def test_times_are_coerced():
 entry = TarEntry('a', mtime=10, atime=2.5)
 assert entry.mtime == TarTime(10, 0)
 assert entry.atime == TarTime(2, 500000000)
 entry.ctime = TarTime(7, 1)
 assert entry.ctime.nanos == 1

def test_permissions():
 entry = TarEntry('a', mode=0o640)
 assert entry.permissions == frozenset([S_IRUSR, S_IWUSR, S_IRGRP])
 entry.permissions = [S_IRUSR, S_IXOTH]
 assert entry.mode == 0o401
 entry.permissions = None
 assert entry.mode is None

def test_copy_is_independent():
 entry = TarEntry('a', size=3, typeflag='0', format=TarFormat.GNU, extraHeaders={'k': 'v'})
 other = entry.copy()
 other.extraHeaders['k'] = 'w'
 other.name = 'b'
 assert entry.extraHeaders == {'k': 'v'}
 assert entry.name == 'a'
 assert other.format is TarFormat.GNU and other.magic == 'ustar  '
 assert other.size == 3

def test_apply_entry_fills_unset_fields():
 entry = TarEntry('a', uid=5, extraHeaders={'x': '1'})
 entry.applyEntry(TarEntry('b', uid=6, gid=7, uname='bob', extraHeaders={'x': '2', 'y': '3'}))
 assert entry.name == 'a'
 assert entry.uid == 5
 assert entry.gid == 7
 assert entry.uname == 'bob'
 assert entry.extraHeaders == {'x': '1', 'y': '3'}
 assert entry.applyEntry(None) is entry

def test_merge_entry_overwrites():
 entry = TarEntry('a', uid=5, gid=1, extraHeaders={'x': '1'})
 entry.mergeEntry(TarEntry('b', uid=6, extraHeaders={'x': '2'}))
 assert entry.name == 'b'
 assert entry.uid == 6
 assert entry.gid == 1
 assert entry.extraHeaders == {'x': '2'}

@pytest.mark.parametrize('typeflag, predicate', [
 ('0', 'isRegularFile'),
 ('\0', 'isRegularFile'),
 ('7', 'isRegularFile'),
 ('1', 'isHardLink'),
 ('2', 'isSymbolicLink'),
 ('3', 'isCharDevice'),
 ('4', 'isBlockDevice'),
 ('5', 'isDirectory'),
 ('6', 'isFifo'),
 ('S', 'isSparse'),
])
def test_predicates(typeflag, predicate):
 predicates = ['isRegularFile', 'isHardLink', 'isSymbolicLink', 'isCharDevice', 'isBlockDevice', 'isDirectory', 'isFifo', 'isSparse']
 entry = TarEntry('a', typeflag=typeflag)
 for name in predicates:
  assert getattr(entry, name)() == (name == predicate)

def test_file_mode():
 assert fileMode(TarEntry('d/', typeflag='5', mode=0o755)) == S_IFDIR | 0o755
 assert fileMode(TarEntry('l', typeflag='2', mode=0o777)) == S_IFLNK | 0o777
 assert fileMode(TarEntry('f', typeflag='0')) == S_IFREG
