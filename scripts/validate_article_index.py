#!/usr/bin/env python3
"""Validate an article index file against the category configuration.

Usage: python scripts/validate_article_index.py --help
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from indexer.index_validator import main

if __name__ == "__main__":
    sys.exit(main())
