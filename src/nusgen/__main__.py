"""Allow ``python -m nusgen``."""

import sys

from nusgen.cli import main

if __name__ == "__main__":
    sys.exit(main())
