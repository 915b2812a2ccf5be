"""Command-line entry point for Solvent."""

import sys

from solvent.cli import main

if __name__ == "__main__":
    sys.exit(main())
