"""Entry point for running the notes client."""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
