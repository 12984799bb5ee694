"""Configuration module for guidegate.

Provides runtime settings, the content repository layout, and loaders for the
content schema and category configuration.
"""

from indexer.article_schema import ConfigError

from .schema_loader import (
    DEFAULT_SCHEMA,
    load_category_config,
    load_content_schema,
    read_document
)
from .settings import ContentLayout, ContentSettings

__all__ = [
    'ConfigError',
    'DEFAULT_SCHEMA',
    'load_category_config',
    'load_content_schema',
    'read_document',
    'ContentLayout',
    'ContentSettings'
]
