""" Command line entry: python3 -m netlinknh """

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
