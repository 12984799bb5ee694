"""Article data model for guidegate.

Defines the article record and index shapes shared by the validators, the
promotion pipeline and the read side, along with the category configuration
models.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .field_rules import normalize_tags, to_canonical_iso


class ConfigError(Exception):
    """Raised when a schema or category configuration cannot be loaded."""
    pass


# Maps the JSON wire names to dataclass attribute names.
RECORD_WIRE_FIELDS = {
    "id": "id",
    "slug": "slug",
    "filename": "filename",
    "title": "title",
    "description": "description",
    "category": "category",
    "subcategory": "subcategory",
    "difficulty": "difficulty",
    "readTime": "read_time",
    "lastUpdated": "last_updated",
    "tags": "tags",
    "featured": "featured",
    "technology": "technology",
}


@dataclass
class ArticleRecord:
    """One entry of the article index."""
    id: str
    slug: str
    filename: str
    title: str
    description: str = ""
    category: str = ""
    subcategory: str = ""
    difficulty: str = "beginner"
    read_time: int = 1
    last_updated: str = ""
    tags: Union[str, List[str]] = field(default_factory=list)
    featured: bool = False
    technology: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def tag_list(self) -> List[str]:
        """Tags normalized to a list."""
        return normalize_tags(self.tags) or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON wire shape."""
        result: Dict[str, Any] = {}
        for wire_name, attr in RECORD_WIRE_FIELDS.items():
            value = getattr(self, attr)
            if attr == "technology" and value is None:
                continue
            result[wire_name] = value
        result.update(self.extra)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ArticleRecord':
        """Create from a JSON wire dictionary.

        Assumes the data already passed record validation; unknown keys are
        preserved in ``extra``.
        """
        kwargs = {}
        extra = {}
        for key, value in data.items():
            attr = RECORD_WIRE_FIELDS.get(key)
            if attr is None:
                extra[key] = value
            else:
                kwargs[attr] = value
        kwargs.setdefault("id", "")
        kwargs.setdefault("slug", "")
        kwargs.setdefault("filename", "")
        kwargs.setdefault("title", "")
        return cls(extra=extra, **kwargs)


@dataclass
class ArticleIndex:
    """The article catalog document."""
    last_updated: str
    total_articles: int
    categories: List[str] = field(default_factory=list)
    technologies: List[str] = field(default_factory=list)
    articles: List[ArticleRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON wire shape."""
        return {
            "lastUpdated": self.last_updated,
            "totalArticles": self.total_articles,
            "categories": list(self.categories),
            "technologies": list(self.technologies),
            "articles": [article.to_dict() for article in self.articles],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ArticleIndex':
        """Create from a JSON wire dictionary."""
        articles = [ArticleRecord.from_dict(a) for a in data.get("articles", [])]
        return cls(
            last_updated=data.get("lastUpdated", ""),
            total_articles=data.get("totalArticles", len(articles)),
            categories=list(data.get("categories", [])),
            technologies=list(data.get("technologies", [])),
            articles=articles,
        )

    @classmethod
    def from_records(cls, records: List[ArticleRecord],
                     last_updated: Optional[str] = None) -> 'ArticleIndex':
        """Build a self-consistent index from a list of records."""
        categories: List[str] = []
        technologies: List[str] = []
        for record in records:
            if record.category and record.category not in categories:
                categories.append(record.category)
            if record.technology and record.technology not in technologies:
                technologies.append(record.technology)
        return cls(
            last_updated=last_updated or to_canonical_iso(datetime.now(timezone.utc)),
            total_articles=len(records),
            categories=categories,
            technologies=technologies,
            articles=list(records),
        )

    @classmethod
    def empty(cls) -> 'ArticleIndex':
        """Index with no articles."""
        return cls.from_records([])


class Subcategory(BaseModel):
    """A subcategory within a category."""
    id: str
    title: str
    color: Optional[str] = None


class Category(BaseModel):
    """A top-level category and its subcategories."""
    id: str
    title: str
    description: Optional[str] = None
    subcategories: List[Subcategory] = Field(default_factory=list)

    def subcategory_ids(self) -> List[str]:
        return [sub.id for sub in self.subcategories]

    def get_subcategory(self, subcategory_id: str) -> Optional[Subcategory]:
        for sub in self.subcategories:
            if sub.id == subcategory_id:
                return sub
        return None


class CategoryConfig(BaseModel):
    """Category/subcategory configuration document."""
    categories: List[Category] = Field(default_factory=list)

    def category_ids(self) -> List[str]:
        return [cat.id for cat in self.categories]

    def get_category(self, category_id: str) -> Optional[Category]:
        for cat in self.categories:
            if cat.id == category_id:
                return cat
        return None

    def has_subcategory(self, category_id: str, subcategory_id: str) -> bool:
        category = self.get_category(category_id)
        return category is not None and category.get_subcategory(subcategory_id) is not None
