#!/usr/bin/env python3
#

''' Exceptions raised by the audio metadata parsers.

    Every parse failure is fatal for the parse in progress:
    the caller sees exactly one of these and no metadata record.
'''

class AudioInfoError(Exception):
  ''' Base class for parse failures.

      Attributes:
      * `path`: the dotted atom path at which the failure was detected,
        or `None` if the failure happened outside any atom
  '''

  def __init__(self, message, path=None):
    super().__init__(message)
    self.path = path

  def __str__(self):
    message = self.args[0] if self.args else ''
    if self.path:
      return f'{self.path}: {message}'
    return str(message)

class TruncatedInput(AudioInfoError):
  ''' Fewer bytes were available than a bounded read required.
  '''

class MalformedStructure(AudioInfoError):
  ''' A declared atom size is inconsistent with its container
      or with the atom header itself.
  '''

class SchemaMismatch(AudioInfoError):
  ''' A required atom was absent before its container ended.
  '''
