from __future__ import annotations
import sys

from storage_audit.cli import main

if __name__ == "__main__":
    sys.exit(main())
