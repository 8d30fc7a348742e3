"""Run the server with ``python -m song_director``."""

import sys

from .server import main

if __name__ == "__main__":
    sys.exit(main())
