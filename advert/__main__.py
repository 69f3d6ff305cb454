"""
Advert package __main__ entry point.

Allows running with: python -m advert
"""

import sys

from advert.app.run import main

if __name__ == "__main__":
    sys.exit(main())
