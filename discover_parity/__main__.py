"""
Entry point for running the suite as a module.

Usage:
    python -m discover_parity <command>
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
