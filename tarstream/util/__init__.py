"""Some utility functions to describe binary layouts"""

import functools
import struct

from collections import namedtuple

def roundUp(n, i):
 return (n + i - 1) // i * i

def synchronized(func):
 """Serializes calls on an instance holding a _lock"""
 @functools.wraps(func)
 def wrapper(self, *args, **kwargs):
  with self._lock:
   return func(self, *args, **kwargs)
 return wrapper

class Struct:
 LITTLE_ENDIAN = '<'
 BIG_ENDIAN = '>'
 PADDING = '%dx'
 CHAR = 'c'
 STR = '%ds'
 INT64 = 'Q'
 INT32 = 'I'
 INT16 = 'H'
 INT8 = 'B'

 def __init__(self, name, fields, byteorder=LITTLE_ENDIAN):
  self.tuple = namedtuple(name, (n for n, fmt in fields if not isinstance(fmt, int)))
  self.format = byteorder + ''.join(self.PADDING % fmt if isinstance(fmt, int) else fmt for n, fmt in fields)
  self.size = struct.calcsize(self.format)

 def unpack(self, data, offset = 0):
  if isinstance(data, (bytes, bytearray, memoryview)):
   data = bytes(data[offset:offset+self.size])
  else:
   data.seek(offset)
   data = data.read(self.size)
  if len(data) < self.size:
   return None
  return self.tuple._make(struct.unpack_from(self.format, data))

 def pack(self, **kwargs):
  return struct.pack(self.format, *self.tuple(**kwargs))
