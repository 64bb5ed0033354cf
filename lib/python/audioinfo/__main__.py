''' Run the M4A command line.
'''

import sys

from .m4a import main

sys.exit(main(sys.argv))
