#!/usr/bin/env python3
#

''' The metadata record produced by the audio parsers.
'''

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Optional

@dataclass(frozen=True)
class AudioInfo:
  ''' Metadata for an audio file.

      Fields absent from the source are `None`
      except where a neutral default is more useful:
      `compilation` is `False`, `rating` and `tempo` are `0`,
      `speed` and `volume` are `Decimal(1)`.
      `duration` is in milliseconds.
  '''

  brand: Optional[str] = None
  version: Optional[str] = None
  duration: Optional[int] = None
  title: Optional[str] = None
  artist: Optional[str] = None
  album_artist: Optional[str] = None
  album: Optional[str] = None
  year: Optional[int] = None
  genre: Optional[str] = None
  comment: Optional[str] = None
  track: Optional[int] = None
  tracks: Optional[int] = None
  disc: Optional[int] = None
  discs: Optional[int] = None
  copyright: Optional[str] = None
  composer: Optional[str] = None
  grouping: Optional[str] = None
  compilation: bool = False
  lyrics: Optional[str] = None
  cover: Optional[bytes] = None
  rating: int = 0
  tempo: int = 0
  speed: Decimal = Decimal(1)
  volume: Decimal = Decimal(1)

  def items(self):
    ''' Generator yielding `(field_name,value)` for each field which is not `None`.
    '''
    for field in fields(self):
      value = getattr(self, field.name)
      if value is not None:
        yield field.name, value
