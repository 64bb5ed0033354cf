#!/usr/bin/env python3
#
# Streaming walker over the MP4 atom tree.
#

''' Streaming access to the atom (box) tree of MP4 family files.

    Atoms are read lazily, depth first, as the caller descends.
    Only the atoms on the active path exist at any time:
    asking a container for its next child discards whatever was
    left unread of the previous child and invalidates it.

    Example:

        mp4 = MP4Input(ByteCursor.from_source('song.m4a'))
        ftyp = mp4.next_child('ftyp')
        brand = ftyp.read_string('iso8859-1', 4)
        moov = mp4.next_child_up_to('moov')
        while moov.has_more_children():
          atom = moov.next_child()
          ...

    Atom header layout:
    * 4 byte big endian size, 4 byte type
    * size `1`: an 8 byte big endian size follows
    * size `0`: the atom extends to the end of its container
'''

from decimal import Decimal
import re
from typing import Optional

from icontract import require

from cs.binary import UInt8, Int16BE, UInt16BE, Int32BE, UInt32BE, UInt64BE

from .cursor import ByteCursor
from .errors import MalformedStructure, SchemaMismatch, TruncatedInput

# atom header sizes
HEADER_SIZE = 8
EXTENDED_HEADER_SIZE = 16

# the characters discarded from the ends of decoded strings
TRIM_CHARS = ''.join(chr(c) for c in range(0x21))

class AtomContainer:
  ''' The machinery shared by the root `MP4Input` and every `Atom`:
      child iteration and bounded value reads.

      Attributes:
      * `cursor`: the shared `ByteCursor`
      * `parent`: the enclosing container, `None` for the root
      * `type_code`: the raw 4 byte type, `b''` for the root
      * `type`: `type_code` decoded as ISO-8859-1
      * `path`: the dotted type path from the root
      * `remaining`: the unread payload bytes,
        or `None` for a container running to the end of the source
      * `valid`: false once the container has been superseded
  '''

  def __init__(self, cursor: ByteCursor, parent, type_code: bytes, remaining):
    self.cursor = cursor
    self.parent = parent
    self.type_code = type_code
    self.type = type_code.decode('iso8859-1')
    if parent is None or not parent.path:
      self.path = self.type
    else:
      self.path = parent.path + '.' + self.type
    self.remaining = remaining
    self.valid = True
    self._child = None

  def _child_path(self, type_code):
    type_s = type_code.decode('iso8859-1')
    return self.path + '.' + type_s if self.path else type_s

  def _release_child(self):
    ''' Discard the unread remainder of the current child, if any,
        and invalidate it.
        This is the only place where unread atom data is skipped.
    '''
    child = self._child
    if child is not None:
      self._child = None
      child._release_child()
      if child.remaining is None:
        self.cursor.skip_rest()
      elif child.remaining > 0:
        self.cursor.skip(child.remaining, path=child.path)
      child.remaining = 0
      child.valid = False

  @require(lambda self: self.valid)
  def _consume(self, size: int):
    ''' Account for `size` bytes about to be read from this container's payload.
    '''
    self._release_child()
    if self.remaining is not None:
      if size > self.remaining:
        raise TruncatedInput(
            f'read of {size} bytes exceeds the {self.remaining} bytes remaining',
            self.path
        )
      self.remaining -= size

  @require(lambda self: self.valid)
  def has_more_children(self) -> bool:
    ''' Test whether there are more unread bytes in this container.
    '''
    if self.remaining is None:
      self._release_child()
      return not self.cursor.at_eof()
    return self.remaining > 0

  @require(lambda self: self.valid)
  def next_child(self, expected=None) -> 'Atom':
    ''' Read the next child atom header and return the new `Atom`.
        The previous child is discarded first.

        If `expected` is not `None` it is a regular expression
        which must match the whole of the child's type,
        otherwise `SchemaMismatch` is raised.
    '''
    self._release_child()
    if not self.has_more_children():
      raise SchemaMismatch(
          f'no more children, expected {expected or "an atom"}', self.path
      )
    cursor = self.cursor
    offset = cursor.offset
    remaining = self.remaining
    if remaining is not None and remaining < HEADER_SIZE:
      raise MalformedStructure(
          f'{remaining} bytes remaining, too few for an atom header',
          self.path
      )
    size = cursor.parse_value(UInt32BE, path=self.path)
    type_code = cursor.take(4, path=self.path)
    header_size = HEADER_SIZE
    if size == 1:
      if remaining is not None and remaining < EXTENDED_HEADER_SIZE:
        raise MalformedStructure(
            f'{remaining} bytes remaining, too few for an extended atom header',
            self._child_path(type_code)
        )
      size = cursor.parse_value(UInt64BE, path=self.path)
      header_size = EXTENDED_HEADER_SIZE
      if size < header_size:
        raise MalformedStructure(
            f'invalid extended size {size}, less than the header size {header_size}',
            self._child_path(type_code)
        )
    elif size == 0:
      # extends to the end of this container
      size = remaining
    elif size < header_size:
      raise MalformedStructure(
          f'invalid size {size}, less than the header size {header_size}',
          self._child_path(type_code)
      )
    if remaining is not None:
      if size > remaining:
        raise MalformedStructure(
            f'declared size {size} exceeds the {remaining} bytes remaining in the container',
            self._child_path(type_code)
        )
      self.remaining -= size
    child = Atom(cursor, self, type_code, offset, size, header_size)
    self._child = child
    if expected is not None and not child.type_matches(expected):
      raise SchemaMismatch(
          f'found {child.type!r}, expected {expected!r}', child.path
      )
    return child

  def next_child_up_to(self, expected) -> 'Atom':
    ''' Return the next child whose type matches the regular expression
        `expected`, discarding any children which do not match.
    '''
    while self.has_more_children():
      child = self.next_child()
      if child.type_matches(expected):
        return child
    raise SchemaMismatch(f'no child matching {expected!r}', self.path)

  def children(self):
    ''' Generator yielding each remaining child `Atom` in turn.
        Each yielded `Atom` is invalid once the next is requested.
    '''
    while self.has_more_children():
      yield self.next_child()

  def skip(self, size: Optional[int] = None):
    ''' Skip `size` bytes of the payload, default all the remaining bytes.
    '''
    if size is None:
      self._release_child()
      if self.remaining is None:
        self.cursor.skip_rest()
        self.remaining = 0
        return
      size = self.remaining
    self._consume(size)
    self.cursor.skip(size, path=self.path)

  def _read_value(self, binary_class):
    self._consume(binary_class.length)
    return self.cursor.parse_value(binary_class, path=self.path)

  def read_byte(self) -> int:
    ''' Read an unsigned byte.
    '''
    return self._read_value(UInt8)

  def read_boolean(self) -> bool:
    ''' Read a byte, true if nonzero.
    '''
    return self.read_byte() != 0

  def read_short(self) -> int:
    ''' Read a signed 16 bit integer.
    '''
    return self._read_value(Int16BE)

  def read_ushort(self) -> int:
    ''' Read an unsigned 16 bit integer.
    '''
    return self._read_value(UInt16BE)

  def read_int(self) -> int:
    ''' Read a signed 32 bit integer.
    '''
    return self._read_value(Int32BE)

  def read_uint(self) -> int:
    ''' Read an unsigned 32 bit integer.
    '''
    return self._read_value(UInt32BE)

  def read_long(self) -> int:
    ''' Read an unsigned 64 bit integer.
    '''
    return self._read_value(UInt64BE)

  def read_integer_fixed_point(self) -> Decimal:
    ''' Read a 16.16 fixed point number.
    '''
    return Decimal(self.read_int()) / (1 << 16)

  def read_short_fixed_point(self) -> Decimal:
    ''' Read an 8.8 fixed point number.
    '''
    return Decimal(self.read_short()) / (1 << 8)

  def read_bytes(self, length: Optional[int] = None) -> bytes:
    ''' Read `length` bytes, default all the remaining bytes.
    '''
    if length is None:
      self._release_child()
      if self.remaining is None:
        bs = self.cursor.take_rest()
        self.remaining = 0
        return bs
      length = self.remaining
    self._consume(length)
    return self.cursor.take(length, path=self.path)

  def read_string(self, encoding: str, length: Optional[int] = None) -> str:
    ''' Read `length` bytes, default all the remaining bytes,
        and decode them as `encoding`.
        The result has leading and trailing whitespace
        and control characters removed.
    '''
    bs = self.read_bytes(length)
    return bs.decode(encoding, errors='replace').strip(TRIM_CHARS)

class Atom(AtomContainer):
  ''' An atom in the tree.

      Additional attributes:
      * `offset`: the absolute offset of the atom header
      * `size`: the total atom size including the header,
        `None` if it runs to the end of the source
      * `header_size`: the header length, 8 or 16
  '''

  def __init__(self, cursor, parent, type_code, offset, size, header_size):
    super().__init__(
        cursor,
        parent,
        type_code,
        None if size is None else size - header_size,
    )
    self.offset = offset
    self.size = size
    self.header_size = header_size

  def __str__(self):
    return (
        f'{self.path}[offset={self.offset},size={self.size},'
        f'header={self.header_size},remaining={self.remaining}]'
    )

  def __repr__(self):
    return f'{self.__class__.__name__}({self})'

  @property
  def payload_offset(self) -> int:
    ''' The absolute offset of the atom payload.
    '''
    return self.offset + self.header_size

  def type_matches(self, expected) -> bool:
    ''' Test whether the whole of this atom's type matches
        the regular expression `expected`.
    '''
    return re.fullmatch(expected, self.type) is not None

class MP4Input(AtomContainer):
  ''' The root container: the whole source.

      The root is bounded by the source's end offset if that is known,
      otherwise it runs until end of file.
  '''

  def __init__(self, cursor: ByteCursor):
    end_offset = cursor.end_offset
    super().__init__(
        cursor,
        None,
        b'',
        None if end_offset is None else end_offset - cursor.offset,
    )

  @classmethod
  def from_source(cls, source):
    ''' Return an `MP4Input` for `source`, anything acceptable to
        `ByteCursor.from_source`.
    '''
    return cls(ByteCursor.from_source(source))

  def __str__(self):
    return f'mp4[pos={self.cursor.offset}]'
