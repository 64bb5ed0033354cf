#!/usr/bin/env python3
#
# M4A metadata extraction.
#

''' Metadata extraction for M4A (MPEG-4 audio) files.

    We examine the following atom structure:

        ftyp                  brand (expect M4A or M4P) and version
        moov
          mvhd                duration, speed, volume
          trak
            mdia
              mdhd            duration (corroboration only)
          udta
            meta
              ilst
                ©nam          title
                ©ART          artist
                aART          album artist
                ©alb          album
                ©day          year
                ©cmt          comment
                gnre, ©gen    genre (standard or custom)
                trkn          track number
                disk          disc number
                ©wrt, ©com    composer
                tmpo          BPM
                cprt, ©cpy    copyright
                cpil          compilation
                covr          cover
                rtng          rating
                ©grp          grouping
                ©lyr          lyrics

    Everything else is skipped.
'''

from contextlib import closing
from getopt import GetoptError
import logging
import re
import sys

from cs.cmdutils import BaseCommand
from cs.logutils import error, log as logutils_log
from cs.pfx import Pfx

from .atoms import MP4Input
from .cursor import ByteCursor
from .errors import AudioInfoError
from .genres import genre_for_code
from .metadata import AudioInfo

ASCII = 'iso8859-1'
UTF_8 = 'utf-8'

def main(argv=None):
  ''' Command line mode.
  '''
  return M4ACommand(argv).run()

def _is_blank(value):
  return value is None or not value.strip()

def _text(field_name):
  ''' Return a handler storing the text of a data atom as `field_name`.
  '''

  def store_text(data, fields):
    fields[field_name] = data.read_string(UTF_8)

  return store_text

def _first_text(field_name):
  ''' Return a handler storing the text of a data atom as `field_name`
      unless an earlier item already supplied a nonblank value.
  '''

  def store_first_text(data, fields):
    if _is_blank(fields.get(field_name)):
      fields[field_name] = data.read_string(UTF_8)

  return store_first_text

def _number_pair(number_name, total_name):
  ''' Return a handler storing a (number, total) pair
      such as track 3 of 12.
  '''

  def store_number_pair(data, fields):
    if data.remaining != 4:
      data.skip(2)  # padding
    fields[number_name] = data.read_ushort()
    fields[total_name] = data.read_ushort()

  return store_number_pair

def _store_genre(data, fields):
  ''' A standard genre: a 1-based ID3v1 genre code, or text.
  '''
  if not _is_blank(fields.get('genre')):
    return
  if data.remaining == 2:
    genre = genre_for_code(data.read_ushort())
    if genre is not None:
      fields['genre'] = genre
  else:
    fields['genre'] = data.read_string(UTF_8)

def _store_year(data, fields):
  day = data.read_string(UTF_8)
  if len(day) >= 4 and day[:4].isdecimal():
    fields['year'] = int(day[:4])

def _store_compilation(data, fields):
  fields['compilation'] = data.read_boolean()

def _store_rating(data, fields):
  fields['rating'] = data.read_byte()

def _store_tempo(data, fields):
  fields['tempo'] = data.read_short()

def _store_cover(data, fields):
  fields['cover'] = data.read_bytes()

# mapping of ilst item type to handler(data_atom, fields)
ITEM_HANDLERS = {
    '©alb': _text('album'),
    'aART': _text('album_artist'),
    '©ART': _text('artist'),
    '©cmt': _text('comment'),
    '©com': _first_text('composer'),
    '©wrt': _first_text('composer'),
    'covr': _store_cover,
    'cpil': _store_compilation,
    'cprt': _first_text('copyright'),
    '©cpy': _first_text('copyright'),
    '©day': _store_year,
    'disk': _number_pair('disc', 'discs'),
    'gnre': _store_genre,
    '©gen': _first_text('genre'),
    '©grp': _text('grouping'),
    '©lyr': _text('lyrics'),
    '©nam': _text('title'),
    'rtng': _store_rating,
    'tmpo': _store_tempo,
    'trkn': _number_pair('track', 'tracks'),
}

class M4AExtractor:
  ''' Walk the atom tree of an M4A file and gather an `AudioInfo`.

      Diagnostics go to `log(level,msg,*args)`,
      by default `cs.logutils.log`.
      Walk tracing is logged at `debug_level`;
      advisories such as an unexpected brand are logged as warnings.
      Neither affects the result.
  '''

  BRANDS = 'M4A|M4P'
  EXPERIMENTAL_BRANDS = 'M4V|MP4|mp42|isom'

  # duration disagreements within this many milliseconds are ignored
  DURATION_TOLERANCE = 2

  def __init__(self, debug_level=logging.DEBUG, log=None):
    self.debug_level = debug_level
    self.log = logutils_log if log is None else log

  def trace(self, msg, *a):
    ''' Log a walk trace message.
    '''
    self.log(self.debug_level, msg, *a)

  def advise(self, msg, *a):
    ''' Log an advisory.
    '''
    self.log(logging.WARNING, msg, *a)

  def extract(self, mp4: MP4Input) -> AudioInfo:
    ''' Walk `mp4` and return the `AudioInfo`.
        Any structural failure propagates and no record is made.
    '''
    fields = {}
    self.trace("%s", mp4)
    self.ftyp(mp4.next_child('ftyp'), fields)
    self.moov(mp4.next_child_up_to('moov'), fields)
    return AudioInfo(**fields)

  def ftyp(self, atom, fields):
    ''' The file type: brand and version.
    '''
    self.trace("%s", atom)
    brand = atom.read_string(ASCII, 4)
    if re.fullmatch(self.EXPERIMENTAL_BRANDS, brand):
      self.advise("%s: brand=%s (experimental)", atom.path, brand)
    elif not re.fullmatch(self.BRANDS, brand):
      self.advise("%s: brand=%s (expected M4A or M4P)", atom.path, brand)
    fields['brand'] = brand
    fields['version'] = str(atom.read_int())

  def moov(self, atom, fields):
    ''' The movie: header, tracks and user data.
    '''
    self.trace("%s", atom)
    for child in atom.children():
      if child.type == 'mvhd':
        self.mvhd(child, fields)
      elif child.type == 'trak':
        self.trak(child, fields)
      elif child.type == 'udta':
        self.udta(child, fields)

  @staticmethod
  def header_duration(atom):
    ''' Read the versioned timing prefix of a movie or media header
        and return the duration in milliseconds,
        or `None` if the timescale is zero.
    '''
    version = atom.read_byte()
    atom.skip(3)  # flags
    atom.skip(16 if version == 1 else 8)  # created/modified times
    timescale = atom.read_uint()
    units = atom.read_long() if version == 1 else atom.read_uint()
    if timescale == 0:
      return None
    return units * 1000 // timescale

  def set_duration(self, atom, duration, fields):
    ''' Set the duration unless already set.
        The first value wins; a later disagreement is only logged.
    '''
    if duration is None:
      self.advise("%s: zero timescale, no duration", atom.path)
      return
    current = fields.get('duration')
    if current is None:
      fields['duration'] = duration
    elif abs(current - duration) > self.DURATION_TOLERANCE:
      self.advise("%s: duration %d -> %d", atom.path, current, duration)

  def mvhd(self, atom, fields):
    ''' The movie header: duration, speed and volume.
    '''
    self.trace("%s", atom)
    self.set_duration(atom, self.header_duration(atom), fields)
    fields['speed'] = atom.read_integer_fixed_point()
    fields['volume'] = atom.read_short_fixed_point()

  def trak(self, atom, fields):
    self.trace("%s", atom)
    self.mdia(atom.next_child_up_to('mdia'), fields)

  def mdia(self, atom, fields):
    self.trace("%s", atom)
    self.mdhd(atom.next_child('mdhd'), fields)

  def mdhd(self, atom, fields):
    ''' The media header: the track duration.
    '''
    self.trace("%s", atom)
    self.set_duration(atom, self.header_duration(atom), fields)

  def udta(self, atom, fields):
    self.trace("%s", atom)
    for child in atom.children():
      if child.type == 'meta':
        self.meta(child, fields)
        break

  def meta(self, atom, fields):
    self.trace("%s", atom)
    atom.skip(4)  # version/flags
    for child in atom.children():
      if child.type == 'ilst':
        self.ilst(child, fields)
        break

  def ilst(self, atom, fields):
    ''' The item list: one child per metadata item.
    '''
    self.trace("%s", atom)
    for item in atom.children():
      self.trace("%s", item)
      if item.remaining == 0:
        self.advise("%s: contains no value", item.path)
        continue
      self.data(item.next_child_up_to('data'), fields)

  def data(self, atom, fields):
    ''' An item value, interpreted according to the enclosing item type.
    '''
    self.trace("%s", atom)
    atom.skip(4)  # version/flags
    atom.skip(4)  # reserved
    handler = ITEM_HANDLERS.get(atom.parent.type)
    if handler is not None:
      handler(atom, fields)

def m4a_info(source, *, debug_level=logging.DEBUG, log=None) -> AudioInfo:
  ''' Parse the M4A data from `source` and return an `AudioInfo`.

      `source` may be a filename, `bytes`, a binary file,
      a file descriptor, a `CornuCopyBuffer` or a `ByteCursor`.
      A file opened here from a filename is closed afterwards.
  '''
  if isinstance(source, str):
    with closing(ByteCursor.from_source(source)) as cursor:
      return m4a_info(cursor, debug_level=debug_level, log=log)
  extractor = M4AExtractor(debug_level=debug_level, log=log)
  return extractor.extract(MP4Input(ByteCursor.from_source(source)))

# atom types whose payload is a sequence of atoms
CONTAINER_TYPES = (
    'moov', 'trak', 'mdia', 'minf', 'stbl', 'edts', 'dinf', 'udta', 'ilst'
)

def scan_atoms(container, depth=0):
  ''' Generator yielding `(depth,atom)` for every atom in `container`,
      descending into the known container types and into `ilst` items.
      Each yielded `Atom` is only valid until the next is requested.
  '''
  for atom in container.children():
    yield depth, atom
    if atom.type == 'meta':
      atom.skip(4)  # version/flags
      yield from scan_atoms(atom, depth + 1)
    elif atom.type in CONTAINER_TYPES or container.type == 'ilst':
      yield from scan_atoms(atom, depth + 1)

class M4ACommand(BaseCommand):
  ''' Report on the metadata of M4A files.
  '''

  def cmd_tags(self, argv):
    ''' Usage: {cmd} filenames...
          Print the metadata of each M4A file.
          With -v, trace the atom walk.
    '''
    if not argv:
      raise GetoptError("missing filenames")
    debug_level = logging.INFO if self.options.verbose else logging.DEBUG
    xit = 0
    first = True
    for filename in argv:
      with Pfx(filename):
        try:
          info = m4a_info(filename, debug_level=debug_level)
        except (OSError, AudioInfoError) as e:
          error("%s", e)
          xit = 1
          continue
      if not first:
        print()
      first = False
      print(filename)
      for field_name, value in info.items():
        if field_name == 'cover':
          value = f'{len(value)} bytes'
        print(' ', field_name, value)
    return xit

  def cmd_scan(self, argv):
    ''' Usage: {cmd} filename
          Print the atom tree of filename.
    '''
    if not argv:
      raise GetoptError("missing filename")
    filename = argv.pop(0)
    if argv:
      raise GetoptError(f'extra arguments after filename: {argv!r}')
    with Pfx(filename):
      try:
        with closing(ByteCursor.from_source(filename)) as cursor:
          for depth, atom in scan_atoms(MP4Input(cursor)):
            print('  ' * depth + str(atom))
      except (OSError, AudioInfoError) as e:
        error("%s", e)
        return 1
    return 0

  def cmd_test(self, argv):
    ''' Usage: {cmd} [testnames...]
          Run self tests.
    '''
    from .m4a_tests import selftest  # pylint: disable=import-outside-toplevel
    selftest([self.options.cmd] + argv)

if __name__ == '__main__':
  sys.exit(main(sys.argv))
