import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from indexer.content_validator import (
    ContentValidator,
    FrontmatterError,
    main,
    parse_article,
    validate_batch,
    validate_content,
    validate_filename
)
from indexer.validation_report import IssueKind

from conftest import VALID_BODY, VALID_FRONTMATTER, render_article


def codes(issues):
    return [issue.code for issue in issues]


class TestFilename:
    @pytest.mark.parametrize("name", [
        "foo-bar-12ab34cd.mdx",
        "postgres-16-indexing-0f0f0f0f.mdx",
    ])
    def test_valid_names(self, name):
        assert validate_filename(name).valid

    @pytest.mark.parametrize("name", [
        "Foo-Bar-12ab34cd.mdx",
        "foo_bar-12ab34cd.mdx",
        "foo-bar-12AB34CD.mdx",
        "foo-bar-12ab34c.mdx",
        "foo-bar-12ab34cd.md",
        "12ab34cd.mdx",
        "foo-bar-12ab34cd.mdx\n",
    ])
    def test_invalid_names(self, name):
        check = validate_filename(name)
        assert not check.valid
        assert "8-char hex ID" in check.error


class TestParseArticle:
    def test_splits_frontmatter_and_body(self):
        data, body = parse_article("---\ntitle: Hello\n---\n\n# Hello\n")
        assert data == {"title": "Hello"}
        assert body.strip() == "# Hello"

    @pytest.mark.parametrize("text", [
        "# No frontmatter at all\n",
        "---\ntitle: Unterminated\n\n# Body\n",
        "---\ntitle: [broken\n---\nbody\n",
        "---\n- just\n- a list\n---\nbody\n",
        "---\njust a sentence\n---\nbody\n",
    ])
    def test_rejects_malformed_blocks(self, text):
        with pytest.raises(FrontmatterError):
            parse_article(text)

    def test_empty_block_and_byte_order_mark(self):
        assert parse_article("---\n---\n# Body\n") == ({}, "# Body")
        data, body = parse_article("\ufeff---\ntitle: Hello\n---\n# Hello\n")
        assert data == {"title": "Hello"}
        assert body == "# Hello"


class TestValidateFile:
    def test_valid_article_has_no_errors(self, tmp_path, write_article):
        """A file whose id matches its hex suffix passes cleanly."""
        path = write_article(tmp_path)
        report = ContentValidator().validate_file(path)
        assert report.errors == []
        assert report.warnings == []

    def test_id_mismatch_is_single_consistency_error(self, tmp_path, write_article):
        """A wrong frontmatter id yields exactly one ConsistencyError."""
        path = write_article(tmp_path, id="00000000")
        report = ContentValidator().validate_file(path)
        assert len(report.errors) == 1
        assert report.errors[0].kind == IssueKind.CONSISTENCY
        assert report.errors[0].code == "ID_FILENAME_MISMATCH"
        assert report.errors[0].source == "foo-bar-12ab34cd.mdx"

    def test_read_time_bounds(self, tmp_path, write_article):
        too_long = ContentValidator().validate_file(write_article(tmp_path, readTime=75))
        assert codes(too_long.errors) == ["READ_TIME_OUT_OF_BOUNDS"]
        assert too_long.errors[0].kind == IssueKind.SCHEMA

        ok = ContentValidator().validate_file(write_article(tmp_path, readTime=30))
        assert ok.ok

    def test_missing_description(self, tmp_path, write_article):
        path = write_article(tmp_path, description=None)
        report = ContentValidator().validate_file(path)
        assert codes(report.errors) == ["MISSING_REQUIRED_FIELD"]
        assert report.errors[0].field == "description"

    def test_declared_filename_must_match(self, tmp_path):
        path = tmp_path / "foo-bar-12ab34cd.mdx"
        fields = {**VALID_FRONTMATTER, "filename": "other-guide-12ab34cd.mdx"}
        path.write_text(render_article(fields), encoding="utf-8")
        report = ContentValidator().validate_file(path)
        assert codes(report.errors) == ["FILENAME_MISMATCH"]

    def test_bad_filename_skips_the_file(self, tmp_path, write_article):
        path = write_article(tmp_path, filename="Bad Name.mdx", readTime=500)
        report = ContentValidator().validate_file(path)
        assert len(report.errors) == 1
        assert report.errors[0].kind == IssueKind.FORMAT

    def test_unquoted_timestamp_is_schema_error(self, tmp_path):
        path = tmp_path / "foo-bar-12ab34cd.mdx"
        path.write_text(
            "---\n"
            "title: Foo Bar Guide\n"
            "slug: foo-bar\n"
            "description: A practical guide to running foo bar in production.\n"
            "category: databases\n"
            "subcategory: sql\n"
            "difficulty: beginner\n"
            "readTime: 10\n"
            "lastUpdated: 2025-01-15T10:30:00.000Z\n"
            "tags: foo, bar\n"
            "---\n\n" + VALID_BODY,
            encoding="utf-8"
        )
        report = ContentValidator().validate_file(path)
        assert codes(report.errors) == ["INVALID_TIMESTAMP"]
        assert "quote" in report.errors[0].suggestion

    def test_category_config_cross_check(self, tmp_path, write_article, category_config):
        path = write_article(tmp_path, subcategory="react")
        report = ContentValidator(category_config=category_config).validate_file(path)
        assert codes(report.errors) == ["UNKNOWN_SUBCATEGORY"]

    def test_list_frontmatter_is_parse_error(self, tmp_path):
        """A YAML list in place of the field mapping is reported, not skipped."""
        path = tmp_path / "foo-bar-12ab34cd.mdx"
        path.write_text("---\n- title\n- slug\n---\n\n" + VALID_BODY, encoding="utf-8")
        report = ContentValidator().validate_file(path)
        assert codes(report.errors) == ["FRONTMATTER_PARSE_ERROR"]
        assert report.errors[0].kind == IssueKind.PARSE
        assert "mapping" in report.errors[0].message


class TestValidateBatch:
    def test_parse_error_does_not_stop_the_batch(self, tmp_path, write_article):
        """An unparseable file is one ParseError; later files are still checked."""
        (tmp_path / "aaa-broken-00000001.mdx").write_text("no frontmatter here", encoding="utf-8")
        write_article(tmp_path, filename="zzz-guide-abcdef12.mdx", id="abcdef12", readTime=0)

        report = validate_batch(tmp_path)
        assert [e.kind for e in report.errors] == [IssueKind.PARSE, IssueKind.SCHEMA]
        assert report.errors[0].source == "aaa-broken-00000001.mdx"
        assert report.errors[1].source == "zzz-guide-abcdef12.mdx"

    def test_validation_is_idempotent(self, tmp_path, write_article):
        """Two runs over the same batch give identical reports."""
        write_article(tmp_path, id="00000000")
        write_article(tmp_path, filename="other-guide-0a0b0c0d.mdx", id="0a0b0c0d",
                      body="Too short, no heading.\n\n```js\nx\n```\n")
        validator = ContentValidator()
        first = validator.validate_batch(tmp_path)
        second = validator.validate_batch(tmp_path)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_missing_directory(self, tmp_path):
        report = validate_batch(tmp_path / "missing")
        assert codes(report.errors) == ["DIRECTORY_NOT_FOUND"]

    def test_empty_directory_is_valid(self, tmp_path):
        assert validate_batch(tmp_path).ok


class TestContentAdvisories:
    def test_warnings_never_become_errors(self):
        body = (
            "Intro without a heading.\n\n"
            "```\nplain code\n```\n\n"
            "```\ngraph TD\n  A --> B\n```\n\n"
            "```js\nconsole.log(1)\n```\n\n"
            "```js\nconsole.log(2)\n```\n\n"
            "```brainfuck\n+++\n```\n\n"
            "![](diagram.png)\n"
        )
        report = validate_content(body)
        assert report.errors == []
        assert codes(report.warnings) == [
            "MISSING_HEADING",
            "UNTAGGED_CODE_BLOCK",
            "UNTAGGED_MERMAID",
            "DISCOURAGED_LANGUAGE_ALIAS",
            "UNRECOGNIZED_LANGUAGE",
            "MISSING_ALT_TEXT",
        ]
        alias = report.warnings[3]
        assert "2 code block" in alias.message
        assert alias.suggestion == "Use ```javascript instead of ```js"

    def test_heading_inside_code_block_does_not_count(self):
        body = "```bash\n# not a heading\n```\n" + "x" * 120
        assert "MISSING_HEADING" in codes(validate_content(body).warnings)

    def test_unclosed_fence(self):
        body = "# Title\n\n" + "text " * 30 + "\n\n```python\nprint(1)\n"
        report = validate_content(body)
        assert codes(report.warnings) == ["UNCLOSED_FENCE"]

    def test_image_placeholders(self):
        body = "# Title\n\n" + "text " * 30 + "\n\n" + "\n".join([
            "[IMAGE: architecture overview]",
            "[IMAGE]",
            "[image: lowercase tag]",
            "[IMAGE: ]",
            "[IMAGE: never closed",
            "[IMAGE: a link](https://example.com)",
        ])
        report = validate_content(body)
        placeholders = [w for w in report.warnings if w.code == "MALFORMED_IMAGE_PLACEHOLDER"]
        assert len(placeholders) == 4
        assert "missing ':'" in placeholders[0].message
        assert "written as 'IMAGE'" in placeholders[1].message
        assert "empty description" in placeholders[2].message
        assert "not closed" in placeholders[3].message


class TestCli:
    def test_exit_codes(self, tmp_path, write_article, capsys):
        write_article(tmp_path)
        assert main([str(tmp_path)]) == 0
        assert "Validation successful" in capsys.readouterr().out

        write_article(tmp_path, filename="bad-guide-0a0b0c0d.mdx", id="0a0b0c0d", readTime=75)
        assert main([str(tmp_path)]) == 1
        output = capsys.readouterr().out
        assert "Found 1 error(s)" in output
        assert "readTime" in output

    def test_json_output(self, tmp_path, write_article, capsys):
        write_article(tmp_path, id="00000000")
        assert main([str(tmp_path), "--format", "json"]) == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["is_valid"] is False
        assert payload["errors"][0]["kind"] == "ConsistencyError"
