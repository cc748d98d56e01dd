"""
Main entry point for the fritz_nas package.

Allows running the client as: python -m fritz_nas
"""

import sys

from fritz_nas.cli import main

if __name__ == "__main__":
    sys.exit(main())
