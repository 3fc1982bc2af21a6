#!/usr/bin/env python3
"""
Upload, list, and delete objects in a cloud object-storage bucket.

Thin wrapper around ``storage_uploader.cli`` for running from a checkout
without installing the package.

Usage:
    python scripts/upload.py --bucket my-bucket --file ./report.pdf
    python scripts/upload.py --bucket my-bucket --dir ./site --prefix www --no-overwrite
    python scripts/upload.py --bucket my-bucket --list uploads/
    python scripts/upload.py --bucket my-bucket --delete-all uploads/old/ --yes
"""

import sys
from pathlib import Path

# Add project root to path for imports (before other imports)
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from storage_uploader.cli import main  # noqa: E402


if __name__ == "__main__":
    sys.exit(main())
