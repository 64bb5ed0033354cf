#!/usr/bin/env python3
#

''' Unit tests for audioinfo.cursor.
'''

import os
import sys
from tempfile import TemporaryDirectory
import unittest

from cs.binary import UInt16BE, UInt32BE
from cs.buffer import CornuCopyBuffer

from .cursor import ByteCursor
from .errors import TruncatedInput

class TestByteCursor(unittest.TestCase):
  ''' Tests for `ByteCursor`.
  '''

  def test_from_source(self):
    cursor = ByteCursor.from_source(b'abcdef')
    self.assertIsInstance(cursor.bfr, CornuCopyBuffer)
    self.assertIs(ByteCursor.from_source(cursor), cursor)
    self.assertEqual(cursor.offset, 0)
    self.assertEqual(cursor.end_offset, 6)

  def test_from_filename(self):
    with TemporaryDirectory() as tmpdir:
      filename = os.path.join(tmpdir, 'data')
      with open(filename, 'wb') as f:
        f.write(b'abcdef')
      cursor = ByteCursor.from_source(filename)
      try:
        self.assertEqual(cursor.take(4), b'abcd')
        cursor.skip(2)
        self.assertTrue(cursor.at_eof())
      finally:
        cursor.close()
      # a second close is harmless
      cursor.close()

  def test_take(self):
    cursor = ByteCursor.from_source(b'abcdef')
    self.assertEqual(cursor.take(0), b'')
    self.assertEqual(cursor.take(2), b'ab')
    self.assertEqual(cursor.offset, 2)
    self.assertEqual(cursor.take(4), b'cdef')
    self.assertTrue(cursor.at_eof())

  def test_take_short(self):
    cursor = ByteCursor.from_source(b'abc')
    with self.assertRaises(TruncatedInput) as cm:
      cursor.take(4, path='moov.mvhd')
    self.assertEqual(cm.exception.path, 'moov.mvhd')
    self.assertIn('moov.mvhd', str(cm.exception))

  def test_skip(self):
    cursor = ByteCursor.from_source(b'abcdef')
    cursor.skip(4)
    self.assertEqual(cursor.offset, 4)
    self.assertEqual(cursor.take(2), b'ef')

  def test_skip_beyond_known_end(self):
    cursor = ByteCursor.from_source(b'abcdef')
    with self.assertRaises(TruncatedInput):
      cursor.skip(7)

  def test_skip_beyond_stream_end(self):
    cursor = ByteCursor(CornuCopyBuffer([b'abc', b'def']))
    self.assertIsNone(cursor.end_offset)
    with self.assertRaises(TruncatedInput):
      cursor.skip(10)

  def test_rest(self):
    cursor = ByteCursor(CornuCopyBuffer([b'abc', b'def', b'ghi']))
    cursor.take(1)
    self.assertEqual(cursor.take_rest(), b'bcdefghi')
    self.assertTrue(cursor.at_eof())
    cursor = ByteCursor(CornuCopyBuffer([b'abc', b'def']))
    cursor.skip_rest()
    self.assertEqual(cursor.offset, 6)

  def test_parse_value(self):
    cursor = ByteCursor.from_source(b'\x00\x00\x01\x00\x00\x02\x00')
    self.assertEqual(cursor.parse_value(UInt32BE), 256)
    self.assertEqual(cursor.parse_value(UInt16BE), 2)
    with self.assertRaises(TruncatedInput):
      cursor.parse_value(UInt16BE)

def selftest(argv):
  ''' Run the unit tests.
  '''
  unittest.main(__name__, None, argv)

if __name__ == '__main__':
  selftest(sys.argv)
