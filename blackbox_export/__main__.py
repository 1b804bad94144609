"""
Main entry point for Blackbox Export when run as a module.

This allows running the exporter with: python -m blackbox_export
"""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
