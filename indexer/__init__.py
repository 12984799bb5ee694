"""Indexer package for guidegate.

Provides the article data model and the staged-content and article-index
validators.
"""

from .article_schema import (
    ArticleIndex,
    ArticleRecord,
    Category,
    CategoryConfig,
    ConfigError,
    Subcategory
)
from .content_schema import ContentSchema
from .content_validator import (
    ContentValidator,
    FrontmatterError,
    parse_article,
    validate_batch,
    validate_content,
    validate_filename,
    validate_frontmatter
)
from .index_validator import (
    validate_article_record,
    validate_index,
    validate_index_file,
    validate_index_structure
)
from .validation_report import IssueKind, ValidationIssue, ValidationReport

__all__ = [
    'ArticleIndex',
    'ArticleRecord',
    'Category',
    'CategoryConfig',
    'ConfigError',
    'Subcategory',
    'ContentSchema',
    'ContentValidator',
    'FrontmatterError',
    'parse_article',
    'validate_batch',
    'validate_content',
    'validate_filename',
    'validate_frontmatter',
    'validate_article_record',
    'validate_index',
    'validate_index_file',
    'validate_index_structure',
    'IssueKind',
    'ValidationIssue',
    'ValidationReport'
]
