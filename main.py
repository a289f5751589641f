#!/usr/bin/env python3
"""
tfmatrix - Main entry point.

Runs the command-line interface without installing the package.
"""

import sys

from tfmatrix.cli import main


if __name__ == "__main__":
    sys.exit(main())
