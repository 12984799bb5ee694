import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from indexer.content_schema import ContentSchema
from indexer.field_rules import (
    check_article_fields,
    filename_id,
    is_canonical_iso,
    normalize_tags,
    to_canonical_iso
)
from indexer.validation_report import IssueKind, ValidationReport


def run_rules(data, category_config=None):
    report = ValidationReport()
    check_article_fields(data, ContentSchema(), report, "test.mdx", category_config)
    return report


@pytest.mark.parametrize("value", [
    "2025-01-15T10:30:00.000Z",
    "1999-12-31T23:59:59.999Z",
])
def test_canonical_timestamps_pass(value):
    """Canonical millisecond UTC timestamps round-trip."""
    assert is_canonical_iso(value)


@pytest.mark.parametrize("value", [
    "2025-01-15T10:30:00Z",
    "2025-01-15T10:30:00.000+00:00",
    "2025-01-15T10:30:00.000000Z",
    "2025-01-15",
    "2025-02-30T10:30:00.000Z",
    "2025-01-15T10:30:00.000Z\n",
    datetime(2025, 1, 15, 10, 30),
    None,
])
def test_non_canonical_timestamps_fail(value):
    """Missing milliseconds, offsets and non-strings are rejected."""
    assert not is_canonical_iso(value)


def test_to_canonical_iso_converts_to_utc():
    moment = datetime(2025, 1, 15, 10, 30, 0, 123456, tzinfo=timezone.utc)
    assert to_canonical_iso(moment) == "2025-01-15T10:30:00.123Z"
    assert is_canonical_iso(to_canonical_iso(moment))


def test_normalize_tags():
    """Comma strings and lists normalize to the same list."""
    assert normalize_tags("sql, postgres,,indexes ") == ["sql", "postgres", "indexes"]
    assert normalize_tags(["sql", " postgres "]) == ["sql", "postgres"]
    assert normalize_tags("") == []
    assert normalize_tags(["sql", 3]) is None
    assert normalize_tags(5) is None


def test_filename_id():
    assert filename_id("foo-bar-12ab34cd.mdx") == "12ab34cd"
    assert filename_id("foo-bar.mdx") is None


def test_read_time_bounds():
    """readTime 75 is out of bounds, 30 passes."""
    report = run_rules({"readTime": 75})
    assert [e.kind for e in report.errors] == [IssueKind.SCHEMA]
    assert report.errors[0].field == "readTime"

    assert run_rules({"readTime": 30}).ok


@pytest.mark.parametrize("value", ["30", 30.5, True])
def test_read_time_must_be_integer(value):
    report = run_rules({"readTime": value})
    assert report.errors[0].code == "INVALID_FIELD_TYPE"


def test_title_soft_max_only_warns():
    report = run_rules({"title": "A" * 80})
    assert report.ok
    assert report.warnings[0].code == "LENGTH_ABOVE_SOFT_MAX"


def test_length_errors():
    report = run_rules({"title": "Foo", "description": "Too short"})
    assert [e.field for e in report.errors] == ["title", "description"]
    assert all(e.kind == IssueKind.SCHEMA for e in report.errors)


def test_id_and_slug_formats():
    report = run_rules({"id": "12AB34CD", "slug": "Foo_Bar"})
    assert [(e.kind, e.field) for e in report.errors] == [
        (IssueKind.FORMAT, "id"),
        (IssueKind.FORMAT, "slug"),
    ]


def test_filename_suffix_must_equal_id():
    """A mismatched hex suffix is always a ConsistencyError."""
    report = run_rules({"id": "00000000", "filename": "foo-bar-12ab34cd.mdx"})
    assert len(report.errors) == 1
    assert report.errors[0].kind == IssueKind.CONSISTENCY
    assert report.errors[0].code == "ID_FILENAME_MISMATCH"


def test_unknown_category_reported_once(category_config):
    """A category outside the vocabulary is not cross-checked again."""
    report = run_rules({"category": "cooking", "subcategory": "baking"}, category_config)
    assert len(report.errors) == 1
    assert report.errors[0].code == "INVALID_CATEGORY"


def test_category_missing_from_config(category_config):
    report = run_rules({"category": "mobile", "subcategory": "ios"}, category_config)
    assert len(report.errors) == 1
    assert report.errors[0].kind == IssueKind.CONSISTENCY
    assert report.errors[0].code == "UNKNOWN_CATEGORY"


def test_subcategory_must_belong_to_category(category_config):
    report = run_rules({"category": "databases", "subcategory": "react"}, category_config)
    assert len(report.errors) == 1
    assert report.errors[0].code == "UNKNOWN_SUBCATEGORY"
    assert "sql" in report.errors[0].suggestion


def test_independent_errors_all_reported():
    """Validation does not stop at the first failing field."""
    report = run_rules({
        "difficulty": "expert",
        "tags": "",
        "featured": "yes",
        "lastUpdated": "2025-01-15",
    })
    assert {e.field for e in report.errors} == {"difficulty", "tags", "featured", "lastUpdated"}
