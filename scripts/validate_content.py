#!/usr/bin/env python3
"""Validate staged MDX articles.

Usage: python scripts/validate_content.py --help
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from indexer.content_validator import main

if __name__ == "__main__":
    sys.exit(main())
