"""
facecrop CLI entrypoint for running from a source checkout.

Usage:
    python main.py photos/ -o faces/
    python main.py a.jpg b.jpg --detector dlib --size 256

Installed copies expose the same interface as the `facecrop` command.
This module should not be imported by other modules.
"""

import sys

from facecrop.cli import main

if __name__ == "__main__":
    sys.exit(main())
