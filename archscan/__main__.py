"""Module entry point for running archscan as a package.

Allows: python -m archscan <command>
"""

from archscan.cli import main
import sys

if __name__ == '__main__':
    sys.exit(main())
