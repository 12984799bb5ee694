"""Sources package for guidegate.

Provides read access to published content: the remote/local content fetcher
and the article catalog built on it.
"""

from .content_fetcher import ArticleNotFound, ContentFetcher
from .catalog import Article, ArticleCatalog, Breadcrumb

__all__ = [
    'ArticleNotFound',
    'ContentFetcher',
    'Article',
    'ArticleCatalog',
    'Breadcrumb'
]
