"""Article catalog for guidegate.

Read-side queries over the published content: listings, category filters,
featured articles, substring search and breadcrumb navigation.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from config import ConfigError, load_category_config
from indexer.article_schema import ArticleRecord, Category, CategoryConfig, Subcategory
from indexer.content_validator import FrontmatterError, parse_article

from .content_fetcher import ArticleNotFound, ContentFetcher

logger = logging.getLogger(__name__)


@dataclass
class Article:
    """A published article: index metadata overlaid by its frontmatter, plus body."""
    record: ArticleRecord
    content: str

    @property
    def slug(self) -> str:
        return self.record.slug

    @property
    def title(self) -> str:
        return self.record.title


@dataclass
class Breadcrumb:
    label: str
    href: str


class ArticleCatalog:
    """Queries over the article index served by a ContentFetcher."""

    def __init__(self, fetcher: ContentFetcher, category_config: Optional[CategoryConfig] = None):
        self.fetcher = fetcher
        self._category_config = category_config

    @property
    def category_config(self) -> CategoryConfig:
        if self._category_config is None:
            path = self.fetcher.layout.categories
            try:
                self._category_config = load_category_config(path)
            except ConfigError as e:
                logger.error(f"Could not load category configuration: {e}")
                self._category_config = CategoryConfig()
        return self._category_config

    def all_articles(self) -> List[ArticleRecord]:
        return self.fetcher.fetch_article_index().articles

    def get_article(self, slug: str) -> Optional[Article]:
        """Article by slug, or None when it is unknown or unreadable."""
        record = next((a for a in self.all_articles() if a.slug == slug), None)
        if record is None:
            return None

        try:
            text = self.fetcher.fetch_article_content(record.filename)
            data, body = parse_article(text)
        except (ArticleNotFound, FrontmatterError) as e:
            logger.error(f"Error loading article {slug}: {e}")
            return None

        # Frontmatter overrides index metadata
        merged = {**record.to_dict(), **data}
        return Article(record=ArticleRecord.from_dict(merged), content=body)

    def articles_by_category(self, category: str,
                             subcategory: Optional[str] = None) -> List[ArticleRecord]:
        return [
            a for a in self.all_articles()
            if a.category == category and (subcategory is None or a.subcategory == subcategory)
        ]

    def featured_articles(self) -> List[ArticleRecord]:
        return [a for a in self.all_articles() if a.featured is True]

    def search(self, query: str) -> List[ArticleRecord]:
        """Case-insensitive substring match over title, description and tags."""
        term = query.lower()
        results = []
        for article in self.all_articles():
            fields = [article.title or "", article.description or ""] + article.tag_list
            if any(term in str(value).lower() for value in fields):
                results.append(article)
        return results

    def categories(self) -> List[Category]:
        return list(self.category_config.categories)

    def get_category(self, category_id: str) -> Optional[Category]:
        return self.category_config.get_category(category_id)

    def get_subcategory(self, category_id: str, subcategory_id: str) -> Optional[Subcategory]:
        category = self.get_category(category_id)
        if category is None:
            return None
        return category.get_subcategory(subcategory_id)

    def breadcrumbs(self, category: Optional[str] = None, subcategory: Optional[str] = None,
                    title: Optional[str] = None) -> List[Breadcrumb]:
        """Home, then known category and subcategory, then the article title."""
        crumbs = [Breadcrumb(label="Home", href="/")]

        if category:
            cat = self.get_category(category)
            if cat:
                crumbs.append(Breadcrumb(label=cat.title, href=f"/{category}"))

        if category and subcategory:
            sub = self.get_subcategory(category, subcategory)
            if sub:
                crumbs.append(Breadcrumb(label=sub.title, href=f"/{category}/{subcategory}"))

        if title:
            crumbs.append(Breadcrumb(label=title, href="#"))

        return crumbs
