"""Article index validation for guidegate.

The article index is a denormalized cache of its own article list: the
``totalArticles`` count and the ``categories``/``technologies`` sets must be
derivable from ``articles``. Drift in either direction is an error.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .article_schema import CategoryConfig
from .content_schema import ContentSchema
from .field_rules import check_article_fields, check_required, is_canonical_iso
from .validation_report import IssueKind, ValidationReport

logger = logging.getLogger(__name__)

INDEX_SOURCE = "index"


def _distinct(values: List[Any]) -> List[Any]:
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def record_label(record: Any, position: int) -> str:
    """Human-readable label for an index entry."""
    if isinstance(record, dict) and isinstance(record.get("id"), str):
        return f"article {record['id']}"
    return f"article #{position}"


def _check_string_array(index: Dict[str, Any], name: str,
                        report: ValidationReport) -> Optional[List[str]]:
    if name not in index:
        return None
    values = index[name]
    if not isinstance(values, list):
        report.error(IssueKind.SCHEMA, f"{name} must be an array",
                     source=INDEX_SOURCE, field=name, code="INVALID_FIELD_TYPE")
        return None
    if not all(isinstance(v, str) for v in values):
        report.error(IssueKind.SCHEMA, f"{name} must contain only strings",
                     source=INDEX_SOURCE, field=name, code="INVALID_FIELD_TYPE")
        return None
    for value in _distinct([v for v in values if values.count(v) > 1]):
        report.warn(IssueKind.CONSISTENCY, f"'{value}' is listed more than once",
                    source=INDEX_SOURCE, field=name, code="DUPLICATE_ENTRY")
    return values


def _check_drift(name: str, listed: List[str], referenced: List[str],
                 report: ValidationReport) -> None:
    """Both directions: referenced-but-unlisted and listed-but-unreferenced."""
    singular = "category" if name == "categories" else "technology"
    for value in referenced:
        if value not in listed:
            report.error(
                IssueKind.CONSISTENCY,
                f"Article {singular} '{value}' not listed in {name} array",
                source=INDEX_SOURCE, field=name, code="INDEX_SET_MISSING_VALUE",
            )
    for value in _distinct(listed):
        if value not in referenced:
            report.error(
                IssueKind.CONSISTENCY,
                f"{singular.capitalize()} '{value}' listed in {name} array "
                f"but not used by any article",
                source=INDEX_SOURCE, field=name, code="INDEX_SET_UNUSED_VALUE",
            )


def _check_unique(articles: List[Dict[str, Any]], key: str,
                  report: ValidationReport) -> None:
    seen: Dict[Any, int] = {}
    for position, article in enumerate(articles):
        value = article.get(key)
        if not isinstance(value, str):
            continue
        if value in seen:
            report.error(
                IssueKind.CONSISTENCY,
                f"Duplicate {key} '{value}' (articles #{seen[value]} and #{position})",
                source=INDEX_SOURCE, field=f"articles.{key}", code="DUPLICATE_ARTICLE_KEY",
            )
        else:
            seen[value] = position


def validate_index_structure(index: Any, schema: Optional[ContentSchema] = None,
                             category_config: Optional[CategoryConfig] = None) -> ValidationReport:
    """Validate the index-level fields and their consistency with ``articles``.

    Each check runs independently, so a count mismatch does not hide a set
    drift and vice versa.
    """
    schema = schema or ContentSchema()
    report = ValidationReport()

    if not isinstance(index, dict):
        report.error(IssueKind.SCHEMA, "Index must be a JSON object",
                     source=INDEX_SOURCE, code="INVALID_INDEX")
        return report

    check_required(index, schema.index_required, report, INDEX_SOURCE)

    if "lastUpdated" in index and not is_canonical_iso(index["lastUpdated"]):
        report.error(
            IssueKind.SCHEMA,
            f"lastUpdated must be valid ISO date string (got: {index['lastUpdated']!r})",
            source=INDEX_SOURCE, field="lastUpdated", code="INVALID_TIMESTAMP",
        )

    articles = index.get("articles")
    if "articles" in index and not isinstance(articles, list):
        report.error(IssueKind.SCHEMA, "articles must be an array",
                     source=INDEX_SOURCE, field="articles", code="INVALID_FIELD_TYPE")
        articles = None

    if "totalArticles" in index:
        total = index["totalArticles"]
        if isinstance(total, bool) or not isinstance(total, int):
            report.error(IssueKind.SCHEMA, "totalArticles must be a number",
                         source=INDEX_SOURCE, field="totalArticles", code="INVALID_FIELD_TYPE")
        elif articles is not None and total != len(articles):
            report.error(
                IssueKind.CONSISTENCY,
                f"totalArticles ({total}) does not match articles.length ({len(articles)})",
                source=INDEX_SOURCE, field="totalArticles", code="TOTAL_MISMATCH",
            )

    categories = _check_string_array(index, "categories", report)
    technologies = _check_string_array(index, "technologies", report)

    if categories is not None and category_config is not None:
        valid = category_config.category_ids()
        for category in _distinct(categories):
            if category not in valid:
                report.error(
                    IssueKind.CONSISTENCY,
                    f"Invalid category: {category}. Valid: {', '.join(valid)}",
                    source=INDEX_SOURCE, field="categories", code="UNKNOWN_CATEGORY",
                )

    if articles is not None:
        entries = [a for a in articles if isinstance(a, dict)]
        if categories is not None:
            referenced = _distinct([a["category"] for a in entries
                                    if isinstance(a.get("category"), str)])
            _check_drift("categories", categories, referenced, report)
        if technologies is not None:
            referenced = _distinct([a["technology"] for a in entries
                                    if isinstance(a.get("technology"), str)])
            _check_drift("technologies", technologies, referenced, report)
        for key in ("id", "slug", "filename"):
            _check_unique(entries, key, report)

    return report


def validate_article_record(record: Any, category_config: Optional[CategoryConfig] = None,
                            schema: Optional[ContentSchema] = None,
                            source: Optional[str] = None) -> ValidationReport:
    """Full per-field validation of one index entry plus its cross references."""
    schema = schema or ContentSchema()
    report = ValidationReport()
    source = source or record_label(record, 0)

    if not isinstance(record, dict):
        report.error(IssueKind.SCHEMA, "Article entry must be a JSON object",
                     source=source, code="INVALID_RECORD")
        return report

    check_required(record, schema.record_required, report, source)
    check_article_fields(record, schema, report, source, category_config)
    return report


def validate_index(index: Any, schema: Optional[ContentSchema] = None,
                   category_config: Optional[CategoryConfig] = None) -> ValidationReport:
    """Validate index structure, then every article record in order."""
    schema = schema or ContentSchema()
    report = validate_index_structure(index, schema, category_config)

    if isinstance(index, dict) and isinstance(index.get("articles"), list):
        logger.info(f"Validating {len(index['articles'])} index articles")
        for position, record in enumerate(index["articles"]):
            report.extend(validate_article_record(
                record, category_config, schema, source=record_label(record, position)
            ))
    return report


def load_index_document(index_path: Union[str, Path]) -> Any:
    """Read an index JSON file. Raises OSError or ValueError."""
    with open(index_path, "r", encoding="utf-8") as f:
        return json.load(f)


def validate_index_file(index_path: Union[str, Path], schema: Optional[ContentSchema] = None,
                        category_config: Optional[CategoryConfig] = None) -> ValidationReport:
    """Validate an index file; an unreadable or non-JSON file is one ParseError."""
    index_path = Path(index_path)
    logger.info(f"Validating article index: {index_path.name}")
    try:
        index = load_index_document(index_path)
    except (OSError, ValueError) as e:
        report = ValidationReport()
        report.error(IssueKind.PARSE, f"Failed to parse index JSON: {e}",
                     source=index_path.name, code="INDEX_PARSE_ERROR")
        return report
    return validate_index(index, schema, category_config)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for article index validation."""
    import argparse

    from config import ConfigError, load_category_config, load_content_schema
    from observability.logging import setup_logging

    parser = argparse.ArgumentParser(description="Validate an article index file")
    parser.add_argument("index_file", help="Article index JSON file")
    parser.add_argument("--categories", required=True, help="Category configuration (JSON or YAML)")
    parser.add_argument("--schema", help="Content schema document (YAML or JSON)")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    parser.add_argument("--log-level", default="INFO", help="Log level")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, use_json=args.json_logs,
                  stream=sys.stderr if args.format == "json" else None)

    try:
        schema = load_content_schema(args.schema)
        categories = load_category_config(args.categories)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    report = validate_index_file(args.index_file, schema, categories)

    if args.format == "json":
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(report.format_report("Article index validation"))

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
