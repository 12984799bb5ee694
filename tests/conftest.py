import json
import logging
import os
import sys

import pytest
import yaml

# Add the parent directory to the path so we can import the packages
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from indexer.article_schema import CategoryConfig

TIMESTAMP = "2025-01-15T10:30:00.000Z"

CATEGORIES_DOCUMENT = {
    "categories": [
        {
            "id": "databases",
            "title": "Databases",
            "description": "Relational and document stores",
            "subcategories": [
                {"id": "sql", "title": "SQL", "color": "blue"},
                {"id": "nosql", "title": "NoSQL", "color": "green"}
            ]
        },
        {
            "id": "web-frontend",
            "title": "Web Frontend",
            "description": "Browsers and UI frameworks",
            "subcategories": [
                {"id": "react", "title": "React", "color": "cyan"}
            ]
        }
    ]
}

VALID_FRONTMATTER = {
    "id": "12ab34cd",
    "title": "Foo Bar Guide",
    "slug": "foo-bar",
    "description": "A practical guide to running foo bar in production.",
    "category": "databases",
    "subcategory": "sql",
    "difficulty": "beginner",
    "readTime": 10,
    "lastUpdated": TIMESTAMP,
    "tags": ["foo", "bar"],
    "technology": "postgresql"
}

VALID_BODY = (
    "# Foo Bar Guide\n\n"
    "Foo bar is a small tool for keeping database schemas tidy. This guide walks "
    "through installing it, configuring it and running it against a live database.\n\n"
    "```python\nprint('hello')\n```\n"
)


def render_article(frontmatter_fields, body=VALID_BODY):
    """Render frontmatter fields and a body into MDX source."""
    header = yaml.safe_dump(frontmatter_fields, sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n\n{body}"


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop console/file handlers installed by CLI entry points."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def category_config():
    return CategoryConfig.model_validate(CATEGORIES_DOCUMENT)


@pytest.fixture
def write_article():
    """Factory writing an MDX file; ``None`` overrides drop a field."""
    def _write(directory, filename="foo-bar-12ab34cd.mdx", body=VALID_BODY, **overrides):
        fields = dict(VALID_FRONTMATTER)
        fields.update(overrides)
        fields = {k: v for k, v in fields.items() if v is not None}
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_text(render_article(fields, body), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def make_record():
    """Factory for index records derived from a numeric seed."""
    def _record(n, category="databases", subcategory="sql", technology="postgresql", **overrides):
        record_id = f"{n:08x}"
        record = {
            "id": record_id,
            "slug": f"guide-number-{n}",
            "filename": f"guide-number-{n}-{record_id}.mdx",
            "title": f"Guide number {n}",
            "description": "A practical guide used to exercise the index validator.",
            "category": category,
            "subcategory": subcategory,
            "difficulty": "intermediate",
            "readTime": 12,
            "lastUpdated": TIMESTAMP,
            "tags": "guide, testing",
            "technology": technology
        }
        record.update(overrides)
        return record
    return _record


@pytest.fixture
def make_index():
    """Factory for a self-consistent index over the given records."""
    def _index(records, **overrides):
        categories, technologies = [], []
        for record in records:
            if record["category"] not in categories:
                categories.append(record["category"])
            if record.get("technology") and record["technology"] not in technologies:
                technologies.append(record["technology"])
        index = {
            "lastUpdated": TIMESTAMP,
            "totalArticles": len(records),
            "categories": categories,
            "technologies": technologies,
            "articles": records
        }
        index.update(overrides)
        return index
    return _index


@pytest.fixture
def content_repo(tmp_path, make_record, make_index):
    """A content repository with one published article and an empty staging area."""
    root = tmp_path / "content"
    (root / "config").mkdir(parents=True)
    (root / "guides").mkdir()
    (root / "staging" / "guides").mkdir(parents=True)
    (root / "staging" / "config").mkdir()

    (root / "config" / "categories.json").write_text(json.dumps(CATEGORIES_DOCUMENT), encoding="utf-8")

    existing = make_record(0xAA)
    (root / "guides" / existing["filename"]).write_text(
        render_article({**VALID_FRONTMATTER, "id": existing["id"], "slug": existing["slug"]}),
        encoding="utf-8"
    )
    (root / "config" / "article-index.json").write_text(
        json.dumps(make_index([existing]), indent=2), encoding="utf-8"
    )
    return root
