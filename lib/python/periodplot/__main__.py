#!/usr/bin/env python3

''' Run the periodplot command line.
'''

import sys

from .cli import main

sys.exit(main(sys.argv))
