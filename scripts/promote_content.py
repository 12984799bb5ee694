#!/usr/bin/env python3
"""Validate staged content and promote it to production.

Usage: python scripts/promote_content.py --help
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pipelines.promotion import main

if __name__ == "__main__":
    sys.exit(main())
