#!/usr/bin/env python3
#

''' Streaming metadata extraction for MP4 family audio files.

    The main entry point is `m4a_info`, which parses an M4A file
    in a single forward pass and returns an `AudioInfo`:

        from audioinfo import m4a_info
        info = m4a_info('song.m4a')
        print(info.title, info.duration)

    The lower level `MP4Input` and `Atom` classes walk the atom tree
    for callers wanting other atoms.
'''

from .atoms import Atom, AtomContainer, MP4Input
from .cursor import ByteCursor
from .errors import (
    AudioInfoError,
    MalformedStructure,
    SchemaMismatch,
    TruncatedInput,
)
from .genres import genre_for_code
from .m4a import M4AExtractor, m4a_info
from .metadata import AudioInfo

__version__ = '20261017'

DISTINFO = {
    'keywords': ["python3"],
    'classifiers': [
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    'install_requires': [
        'cs.binary',
        'cs.buffer',
        'cs.cmdutils',
        'cs.logutils',
        'cs.pfx',
        'icontract',
        'typeguard',
    ],
    'entry_points': {
        'console_scripts': {
            'm4a-info': 'audioinfo.m4a:main',
        },
    },
}
