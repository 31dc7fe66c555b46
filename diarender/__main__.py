"""
Main entry point for running the package as a module.

Usage:
    python -m diarender render /docs /net/layout.dia --width 400
    python -m diarender pregen --book /docs=/srv/docs
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
