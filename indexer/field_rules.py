"""Per-field rules shared by frontmatter and index record validation.

Every check appends to a ValidationReport instead of raising, so a single
pass reports every problem of a record.
"""

from __future__ import annotations
import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from .validation_report import IssueKind, ValidationReport

if TYPE_CHECKING:
    from .article_schema import CategoryConfig
    from .content_schema import ContentSchema

ID_PATTERN = re.compile(r"^[a-f0-9]{8}$")
SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
FILENAME_PATTERN = re.compile(r"^[a-z0-9-]+-[a-f0-9]{8}\.mdx$")
FILENAME_ID_PATTERN = re.compile(r"-([a-f0-9]{8})\.mdx$")

ISO_PARSE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def to_canonical_iso(moment: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS.sssZ`` in UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
        f".{moment.microsecond // 1000:03d}Z"
    )


def is_canonical_iso(value: Any) -> bool:
    """True if value is a string that round-trips through parse and format."""
    if not isinstance(value, str):
        return False
    try:
        parsed = datetime.strptime(value, ISO_PARSE_FORMAT)
    except ValueError:
        return False
    return to_canonical_iso(parsed) == value


def normalize_tags(tags: Any) -> Optional[List[str]]:
    """Normalize tags to a list of non-empty strings.

    Returns None when ``tags`` is neither a string nor a list of strings.
    """
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(",") if t.strip()]
    if isinstance(tags, list):
        if not all(isinstance(t, str) for t in tags):
            return None
        return [t.strip() for t in tags if t.strip()]
    return None


def filename_id(filename: str) -> Optional[str]:
    """Extract the 8-hex id suffix from an article filename."""
    match = FILENAME_ID_PATTERN.search(filename)
    return match.group(1) if match else None


def check_required(data: Dict[str, Any], required: Iterable[str],
                   report: ValidationReport, source: Optional[str]) -> None:
    for name in required:
        if name not in data:
            report.error(
                IssueKind.SCHEMA,
                f"Missing required field: {name}",
                source=source,
                field=name,
                suggestion=f"Add the '{name}' field",
                code="MISSING_REQUIRED_FIELD",
            )


def check_id_matches_filename(record_id: Any, filename: Any,
                              report: ValidationReport, source: Optional[str]) -> None:
    """The hex suffix of the filename must equal the record id."""
    if not isinstance(record_id, str) or not isinstance(filename, str):
        return
    embedded = filename_id(filename)
    if embedded != record_id:
        report.error(
            IssueKind.CONSISTENCY,
            f"id '{record_id}' does not match filename hex id "
            f"'{embedded or '(none)'}' in {filename}",
            source=source,
            field="id",
            code="ID_FILENAME_MISMATCH",
        )


def _check_length(name: str, value: Any, bounds, report: ValidationReport,
                  source: Optional[str]) -> None:
    if not isinstance(value, str):
        report.error(IssueKind.SCHEMA, f"{name} must be a string",
                     source=source, field=name, code="INVALID_FIELD_TYPE")
        return
    length = len(value)
    too_short = bounds.min is not None and length < bounds.min
    too_long = bounds.max is not None and length > bounds.max
    if too_short or too_long:
        if bounds.max is not None:
            expected = f"{bounds.min or 0}-{bounds.max} characters"
        else:
            expected = f"at least {bounds.min} characters"
        report.error(
            IssueKind.SCHEMA,
            f"{name} must be {expected} (current: {length})",
            source=source, field=name, code="LENGTH_OUT_OF_BOUNDS",
        )
    elif bounds.soft_max is not None and length > bounds.soft_max:
        report.warn(
            IssueKind.SCHEMA,
            f"{name} is longer than {bounds.soft_max} characters (current: {length})",
            source=source, field=name,
            suggestion="Shorter titles display better in search results",
            code="LENGTH_ABOVE_SOFT_MAX",
        )


def check_category(data: Dict[str, Any], schema: 'ContentSchema',
                   category_config: Optional['CategoryConfig'],
                   report: ValidationReport, source: Optional[str]) -> None:
    """Check category vocabulary, then cross-check with the category config."""
    category = data.get("category")
    subcategory = data.get("subcategory")

    if "category" in data:
        if not isinstance(category, str):
            report.error(IssueKind.SCHEMA, "category must be a string",
                         source=source, field="category", code="INVALID_FIELD_TYPE")
            return
        if schema.categories and category not in schema.categories:
            report.error(
                IssueKind.SCHEMA,
                f"category must be one of: {', '.join(schema.categories)} (got: {category})",
                source=source, field="category", code="INVALID_CATEGORY",
            )
            return

    if "subcategory" in data and not isinstance(subcategory, str):
        report.error(IssueKind.SCHEMA, "subcategory must be a string",
                     source=source, field="subcategory", code="INVALID_FIELD_TYPE")
        return

    if category_config is None or not isinstance(category, str):
        return

    config_category = category_config.get_category(category)
    if config_category is None:
        report.error(
            IssueKind.CONSISTENCY,
            f"category '{category}' is not defined in the category configuration",
            source=source, field="category", code="UNKNOWN_CATEGORY",
        )
        return

    if isinstance(subcategory, str) and config_category.get_subcategory(subcategory) is None:
        valid = ", ".join(config_category.subcategory_ids()) or "(none)"
        report.error(
            IssueKind.CONSISTENCY,
            f"subcategory '{subcategory}' does not belong to category '{category}'",
            source=source, field="subcategory",
            suggestion=f"Valid subcategories: {valid}",
            code="UNKNOWN_SUBCATEGORY",
        )


def check_article_fields(data: Dict[str, Any], schema: 'ContentSchema',
                         report: ValidationReport, source: Optional[str] = None,
                         category_config: Optional['CategoryConfig'] = None) -> None:
    """Apply every per-field rule that has a value present in ``data``."""
    if "id" in data:
        if not isinstance(data["id"], str) or not ID_PATTERN.fullmatch(data["id"]):
            report.error(IssueKind.FORMAT, "id must be an 8-character lowercase hex string",
                         source=source, field="id", code="INVALID_ID")

    if "slug" in data:
        if not isinstance(data["slug"], str) or not SLUG_PATTERN.fullmatch(data["slug"]):
            report.error(
                IssueKind.FORMAT,
                "slug must be kebab-case (lowercase letters, numbers, hyphens only)",
                source=source, field="slug", code="INVALID_SLUG",
            )

    if "filename" in data:
        filename = data["filename"]
        if not isinstance(filename, str) or not FILENAME_PATTERN.fullmatch(filename):
            report.error(
                IssueKind.FORMAT,
                "filename must match pattern {kebab-case-title}-{id}.mdx",
                source=source, field="filename", code="INVALID_FILENAME",
            )
        if "id" in data:
            check_id_matches_filename(data["id"], filename, report, source)

    if "title" in data:
        _check_length("title", data["title"], schema.title, report, source)

    if "description" in data:
        _check_length("description", data["description"], schema.description, report, source)

    check_category(data, schema, category_config, report, source)

    if "difficulty" in data and data["difficulty"] not in schema.difficulties:
        report.error(
            IssueKind.SCHEMA,
            f"difficulty must be one of: {', '.join(schema.difficulties)}",
            source=source, field="difficulty", code="INVALID_DIFFICULTY",
        )

    if "readTime" in data:
        read_time = data["readTime"]
        bounds = schema.read_time
        if isinstance(read_time, bool) or not isinstance(read_time, int):
            report.error(IssueKind.SCHEMA, "readTime must be an integer number of minutes",
                         source=source, field="readTime", code="INVALID_FIELD_TYPE")
        elif read_time < bounds.min or read_time > bounds.max:
            report.error(
                IssueKind.SCHEMA,
                f"readTime must be between {bounds.min}-{bounds.max} minutes (got: {read_time})",
                source=source, field="readTime", code="READ_TIME_OUT_OF_BOUNDS",
            )

    if "lastUpdated" in data and not is_canonical_iso(data["lastUpdated"]):
        report.error(
            IssueKind.SCHEMA,
            f"lastUpdated must be a canonical ISO-8601 string (got: {data['lastUpdated']!r})",
            source=source, field="lastUpdated",
            suggestion="Use the form 2025-01-15T10:30:00.000Z and quote it in YAML",
            code="INVALID_TIMESTAMP",
        )

    if "tags" in data:
        tags = normalize_tags(data["tags"])
        if tags is None:
            report.error(IssueKind.SCHEMA, "tags must be a string or a list of strings",
                         source=source, field="tags", code="INVALID_FIELD_TYPE")
        elif not tags:
            report.error(IssueKind.SCHEMA, "tags cannot be empty",
                         source=source, field="tags", code="EMPTY_TAGS")

    if "featured" in data and not isinstance(data["featured"], bool):
        report.error(IssueKind.SCHEMA, "featured must be a boolean",
                     source=source, field="featured", code="INVALID_FIELD_TYPE")

    if "technology" in data and not isinstance(data["technology"], str):
        report.error(IssueKind.SCHEMA, "technology must be a string",
                     source=source, field="technology", code="INVALID_FIELD_TYPE")
