#!/usr/bin/env python3
#
# Forward only byte cursor for the atom walker.
#

''' A forward only byte cursor over a `cs.buffer.CornuCopyBuffer`.

    The cursor never returns short data:
    every read either returns exactly what was asked for
    or raises `TruncatedInput`.
'''

from typing import Optional

from icontract import require

from cs.buffer import CornuCopyBuffer

from .errors import TruncatedInput

class ByteCursor:
  ''' A forward only cursor over a `CornuCopyBuffer`.

      The optional `path` parameter of the read methods is the
      dotted atom path to attach to any `TruncatedInput` raised.
  '''

  def __init__(self, bfr: CornuCopyBuffer, close=None):
    self.bfr = bfr
    self._close = close

  @classmethod
  def from_source(cls, source):
    ''' Return a `ByteCursor` for `source`,
        which may be a `ByteCursor` or anything accepted by
        `CornuCopyBuffer.promote`: `bytes`, a filename,
        a binary file, a file descriptor or an iterable of `bytes`.
    '''
    if isinstance(source, cls):
      return source
    if isinstance(source, str):
      # read the file by descriptor, closed by our close()
      f = open(source, 'rb')  # pylint: disable=consider-using-with
      return cls(CornuCopyBuffer.from_fd(f.fileno()), close=f.close)
    return cls(CornuCopyBuffer.promote(source))

  def __str__(self):
    return f'{self.__class__.__name__}(offset={self.offset},end_offset={self.end_offset})'

  def close(self):
    ''' Close the underlying buffer
        and any file opened by `from_source`.
    '''
    self.bfr.close()
    if self._close is not None:
      close, self._close = self._close, None
      close()

  @property
  def offset(self) -> int:
    ''' The absolute offset of the next byte to be read.
    '''
    return self.bfr.offset

  @property
  def end_offset(self) -> Optional[int]:
    ''' The absolute offset of the end of the source if known,
        otherwise `None`.
    '''
    end_offset = getattr(self.bfr, 'final_offset', None)
    if end_offset is None:
      end_offset = self.bfr.end_offset
    return end_offset

  def at_eof(self) -> bool:
    ''' Test whether the source is exhausted.
        This may block while fetching more data.
    '''
    return self.bfr.at_eof()

  @require(lambda size: size >= 0)
  def take(self, size: int, path=None) -> bytes:
    ''' Return exactly `size` bytes.
    '''
    if size == 0:
      return b''
    offset = self.offset
    bs = self.bfr.take(size, short_ok=True)
    if len(bs) < size:
      raise TruncatedInput(
          f'offset {offset}: wanted {size} bytes, only {len(bs)} available',
          path
      )
    return bs

  def take_rest(self) -> bytes:
    ''' Return all the remaining bytes of the source.
    '''
    return b''.join(bytes(bs) for bs in self.bfr)

  @require(lambda size: size >= 0)
  def skip(self, size: int, path=None):
    ''' Advance the cursor by `size` bytes.
    '''
    if size == 0:
      return
    offset = self.offset
    end_offset = self.end_offset
    if end_offset is not None and offset + size > end_offset:
      raise TruncatedInput(
          f'offset {offset}: cannot skip {size} bytes,'
          f' only {end_offset - offset} available', path
      )
    try:
      self.bfr.skip(size)
    except EOFError as e:
      raise TruncatedInput(
          f'offset {offset}: cannot skip {size} bytes: {e}', path
      ) from e

  def skip_rest(self):
    ''' Discard all the remaining bytes of the source.
    '''
    for _ in self.bfr:
      pass

  def parse_value(self, binary_class, path=None):
    ''' Parse a single value using `binary_class`,
        a single field `cs.binary.BinaryStruct` class such as `UInt32BE`.
    '''
    offset = self.offset
    try:
      return binary_class.parse_value(self.bfr)
    except EOFError as e:
      raise TruncatedInput(
          f'offset {offset}: short data for {binary_class.__name__}: {e}', path
      ) from e
