"""Allow ``python -m ingest_ops``."""

import sys

from ingest_ops.console.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
