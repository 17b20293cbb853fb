"""Allow running the package with ``python -m shimswap``."""

import sys

from .app import main

if __name__ == "__main__":
    sys.exit(main())
