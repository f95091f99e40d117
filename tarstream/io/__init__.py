"""Block buffered wrappers around raw byte streams"""

recordSize = 512
defaultBlockSize = 10240
maxBlockSize = 32256

def checkBlockSize(blockSize):
 if blockSize > maxBlockSize:
  raise ValueError('block size cannot be larger than %d' % maxBlockSize)
 if blockSize < recordSize or blockSize % recordSize != 0:
  raise ValueError('block size must be a multiple of %d' % recordSize)
 return blockSize


class BlockReader(object):
 """Reads from a file in chunks of blockSize bytes. Can be used like a regular file"""
 def __init__(self, file, blockSize=defaultBlockSize):
  self.file = file
  self.blockSize = checkBlockSize(blockSize)
  self._buffer = bytearray()
  self._pos = 0
  self._eof = False

 def _fill(self):
  if self._eof:
   return False
  data = self.file.read(self.blockSize)
  if not data:
   self._eof = True
   return False
  self._buffer += data
  return True

 def _consume(self, n):
  self._pos += n
  if self._pos >= self.blockSize:
   del self._buffer[:self._pos]
   self._pos = 0

 def available(self):
  return len(self._buffer) - self._pos

 def read(self, n=-1):
  """Reads up to n bytes, fewer only at the end of the stream"""
  if n < 0:
   while self._fill():
    pass
   n = self.available()
  while self.available() < n and self._fill():
   pass
  data = bytes(self._buffer[self._pos:self._pos+n])
  self._consume(len(data))
  return data

 def skip(self, n):
  skipped = 0
  while skipped < n:
   if not self.available() and not self._fill():
    break
   ct = min(n - skipped, self.available())
   self._consume(ct)
   skipped += ct
  return skipped

 def close(self):
  if self.file is not None:
   self.file.close()
   self.file = None


class BlockWriter(object):
 """Collects writes and passes them to a file in chunks of blockSize bytes"""
 def __init__(self, file, blockSize=defaultBlockSize):
  self.file = file
  self.blockSize = checkBlockSize(blockSize)
  self._buffer = bytearray()

 def write(self, data):
  self._buffer += data
  if len(self._buffer) >= self.blockSize:
   n = len(self._buffer) // self.blockSize * self.blockSize
   self.file.write(bytes(self._buffer[:n]))
   del self._buffer[:n]
  return len(data)

 def flush(self):
  if self._buffer:
   self.file.write(bytes(self._buffer))
   del self._buffer[:]
  if hasattr(self.file, 'flush'):
   self.file.flush()

 def close(self):
  if self.file is not None:
   self.flush()
   self.file.close()
   self.file = None
