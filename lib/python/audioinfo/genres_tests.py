#!/usr/bin/env python3
#

''' Unit tests for audioinfo.genres and audioinfo.metadata.
'''

from dataclasses import FrozenInstanceError
from decimal import Decimal
import doctest
import sys
import unittest

from typeguard import TypeCheckError

from . import genres
from .genres import ID3V1_GENRES, genre_for_code
from .metadata import AudioInfo

class TestGenres(unittest.TestCase):
  ''' Tests for `genre_for_code`.
  '''

  def test_table(self):
    self.assertEqual(len(ID3V1_GENRES), 80)
    self.assertEqual(len(set(ID3V1_GENRES)), 80)

  def test_bounds(self):
    self.assertEqual(genre_for_code(1), 'Blues')
    self.assertEqual(genre_for_code(80), 'Hard Rock')
    self.assertIsNone(genre_for_code(0))
    self.assertIsNone(genre_for_code(81))
    self.assertIsNone(genre_for_code(-1))

  def test_type_checked(self):
    with self.assertRaises(TypeCheckError):
      genre_for_code('2')

  def test_doctests(self):
    failures, _ = doctest.testmod(genres)
    self.assertEqual(failures, 0)

class TestAudioInfo(unittest.TestCase):
  ''' Tests for `AudioInfo`.
  '''

  def test_defaults(self):
    info = AudioInfo()
    self.assertEqual(
        dict(info.items()), {
            'compilation': False,
            'rating': 0,
            'tempo': 0,
            'speed': Decimal(1),
            'volume': Decimal(1),
        }
    )

  def test_items_order(self):
    info = AudioInfo(title='Sample', brand='M4A', duration=4435)
    self.assertEqual(
        [name for name, _ in info.items()][:3],
        ['brand', 'duration', 'title'],
    )

  def test_frozen(self):
    info = AudioInfo(title='Sample')
    with self.assertRaises(FrozenInstanceError):
      info.title = 'Other'

def selftest(argv):
  ''' Run the unit tests.
  '''
  unittest.main(__name__, None, argv)

if __name__ == '__main__':
  selftest(sys.argv)
