"""Staged article validation for guidegate.

Validates candidate MDX files (filename, frontmatter and body) before they
are promoted to the production guide store. Every check reports into a fresh
ValidationReport; nothing is accumulated on the validator itself, so the same
inputs always produce the same report.
"""

import json
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import frontmatter
import yaml

from .article_schema import CategoryConfig
from .content_schema import ContentSchema
from .field_rules import (
    FILENAME_PATTERN,
    check_article_fields,
    check_id_matches_filename,
    check_required,
)
from .validation_report import IssueKind, ValidationReport

logger = logging.getLogger(__name__)

FRONTMATTER_BLOCK = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(?:.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)
FENCE_LINE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>[^`]*)$")
TOP_HEADING = re.compile(r"^#\s+\S")
EMPTY_ALT_IMAGE = re.compile(r"!\[\s*\]\(")


class FrontmatterError(Exception):
    """Raised when an article's frontmatter block cannot be parsed."""
    pass


@dataclass
class FilenameCheck:
    """Outcome of a filename pattern check."""
    valid: bool
    error: Optional[str] = None


@dataclass
class CodeBlock:
    language: str
    first_line: str
    start_line: int


def parse_article(text: str) -> Tuple[Dict[str, Any], str]:
    """Split an article into its frontmatter mapping and body.

    Raises:
        FrontmatterError: if the block is missing, unterminated or not a mapping.
    """
    if not FRONTMATTER_BLOCK.match(text):
        raise FrontmatterError("missing or unterminated frontmatter block (expected leading '---' ... '---')")
    # frontmatter.loads silently drops a block that is not a mapping
    handler = frontmatter.YAMLHandler()
    try:
        fm, content = handler.split(text.lstrip("\ufeff"))
        metadata = handler.load(fm)
    except (yaml.YAMLError, ValueError) as e:
        raise FrontmatterError(f"invalid YAML frontmatter: {e}") from e
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise FrontmatterError(
            f"frontmatter must be a mapping of fields, got {type(metadata).__name__}"
        )
    return metadata, content.strip()


def validate_filename(name: str) -> FilenameCheck:
    """Check the ``{descriptive-title}-{8-hex}.mdx`` pattern."""
    if not FILENAME_PATTERN.fullmatch(name):
        return FilenameCheck(
            valid=False,
            error="Filename must match pattern: {descriptive-title}-{uniqueId}.mdx "
                  "(kebab-case with 8-char hex ID)",
        )
    return FilenameCheck(valid=True)


def scan_code_blocks(body: str) -> Tuple[List[CodeBlock], List[int], Optional[int]]:
    """Find fenced code blocks.

    Returns the blocks, the body line numbers (1-based) that are prose, and
    the start line of a fence left open at the end of the body.
    """
    blocks: List[CodeBlock] = []
    prose_lines: List[int] = []
    open_fence: Optional[str] = None
    current: Optional[CodeBlock] = None
    awaiting_first_line = False

    for number, line in enumerate(body.splitlines(), start=1):
        match = FENCE_LINE.match(line)
        if open_fence is None:
            if match:
                open_fence = match.group("fence")
                info = match.group("info").strip()
                language = info.split()[0].lower() if info else ""
                current = CodeBlock(language=language, first_line="", start_line=number)
                awaiting_first_line = True
            else:
                prose_lines.append(number)
            continue

        stripped = line.strip()
        if (stripped.startswith(open_fence)
                and set(stripped) == {open_fence[0]}):
            blocks.append(current)
            open_fence = None
            current = None
            continue
        if awaiting_first_line and stripped:
            current.first_line = stripped
            awaiting_first_line = False

    unclosed = current.start_line if current is not None else None
    if current is not None:
        blocks.append(current)
    return blocks, prose_lines, unclosed


class ContentValidator:
    """Validates staged article files against a content schema."""

    def __init__(self, schema: Optional[ContentSchema] = None,
                 category_config: Optional[CategoryConfig] = None):
        self.schema = schema or ContentSchema()
        self.category_config = category_config
        tag = re.escape(self.schema.content.image_placeholder_tag)
        self._placeholder = re.compile(
            rf"(?<!!)\[(?P<tag>{tag})\b(?P<rest>[^\]\n]*)(?P<close>\])?(?P<link>\()?",
            re.IGNORECASE,
        )

    def validate_frontmatter(self, data: Dict[str, Any],
                             source: Optional[str] = None) -> ValidationReport:
        """Check required fields, then every field rule independently."""
        report = ValidationReport()
        check_required(data, self.schema.frontmatter_required, report, source)
        check_article_fields(data, self.schema, report, source, self.category_config)
        return report

    def validate_content(self, body: str, source: Optional[str] = None) -> ValidationReport:
        """Advisory checks on the article body. Only ever produces warnings."""
        report = ValidationReport()
        rules = self.schema.content
        lines = body.splitlines()

        if len(body.strip()) < rules.min_length:
            report.warn(IssueKind.CONTENT,
                        f"Content is very short (< {rules.min_length} characters)",
                        source=source, code="SHORT_CONTENT")

        blocks, prose_lines, unclosed = scan_code_blocks(body)
        prose = [(n, lines[n - 1]) for n in prose_lines]

        if not any(TOP_HEADING.match(text) for _, text in prose):
            report.warn(IssueKind.CONTENT, "Missing main heading (# Title)",
                        source=source, code="MISSING_HEADING")

        self._check_code_blocks(blocks, report, source)

        if unclosed is not None:
            report.warn(IssueKind.CONTENT,
                        f"Code fence opened on line {unclosed} is never closed",
                        source=source, code="UNCLOSED_FENCE")

        self._check_images(prose, report, source)
        return report

    def _check_code_blocks(self, blocks: List[CodeBlock], report: ValidationReport,
                           source: Optional[str]) -> None:
        rules = self.schema.content
        untagged = [b for b in blocks if not b.language]
        mermaid_like = [
            b for b in untagged
            if b.first_line.split(" ")[0] in rules.mermaid_keywords
        ]
        plain_untagged = len(untagged) - len(mermaid_like)

        if plain_untagged:
            report.warn(
                IssueKind.CONTENT,
                f"Found {plain_untagged} code block(s) without language specification",
                source=source,
                suggestion="Tag code blocks, e.g. ```javascript, ```sql, ```bash",
                code="UNTAGGED_CODE_BLOCK",
            )
        if mermaid_like:
            report.warn(
                IssueKind.CONTENT,
                f"Found {len(mermaid_like)} potential Mermaid diagram(s) without 'mermaid' language tag",
                source=source, suggestion="Use ```mermaid", code="UNTAGGED_MERMAID",
            )

        aliases: Dict[str, int] = {}
        unknown: Dict[str, int] = {}
        for block in blocks:
            if not block.language:
                continue
            if block.language in rules.language_aliases:
                aliases[block.language] = aliases.get(block.language, 0) + 1
            elif block.language not in rules.recognized_languages:
                unknown[block.language] = unknown.get(block.language, 0) + 1

        for alias, count in aliases.items():
            preferred = rules.language_aliases[alias]
            report.warn(
                IssueKind.CONTENT,
                f"Language alias '{alias}' used in {count} code block(s)",
                source=source, suggestion=f"Use ```{preferred} instead of ```{alias}",
                code="DISCOURAGED_LANGUAGE_ALIAS",
            )
        for language, count in unknown.items():
            report.warn(
                IssueKind.CONTENT,
                f"Unrecognized code block language '{language}' in {count} block(s)",
                source=source, code="UNRECOGNIZED_LANGUAGE",
            )

    def _check_images(self, prose: List[Tuple[int, str]], report: ValidationReport,
                      source: Optional[str]) -> None:
        tag = self.schema.content.image_placeholder_tag
        empty_alt = 0
        for number, text in prose:
            empty_alt += len(EMPTY_ALT_IMAGE.findall(text))
            for match in self._placeholder.finditer(text):
                if match.group("link"):
                    continue
                problem = None
                rest = match.group("rest")
                if not match.group("close"):
                    problem = "is not closed with ']'"
                elif match.group("tag") != tag:
                    problem = f"tag must be written as '{tag}'"
                elif not rest.startswith(":"):
                    problem = f"is missing ':' after '{tag}'"
                elif not rest[1:].strip():
                    problem = "has an empty description"
                if problem:
                    report.warn(
                        IssueKind.CONTENT,
                        f"Image placeholder on line {number} {problem}",
                        source=source,
                        suggestion=f"Use [{tag}: short description of the image]",
                        code="MALFORMED_IMAGE_PLACEHOLDER",
                    )
        if empty_alt:
            report.warn(IssueKind.CONTENT,
                        f"Found {empty_alt} image(s) without alt text",
                        source=source, code="MISSING_ALT_TEXT")

    def validate_file(self, file_path: Union[str, Path]) -> ValidationReport:
        """Validate one staged article file.

        A bad filename or unparseable frontmatter yields a single issue for
        the file; the caller moves on to the next file.
        """
        file_path = Path(file_path)
        name = file_path.name
        report = ValidationReport()
        logger.debug(f"Validating {name}")

        check = validate_filename(name)
        if not check.valid:
            report.error(IssueKind.FORMAT, check.error, source=name, field="filename",
                         code="INVALID_FILENAME")
            return report

        try:
            text = file_path.read_text(encoding="utf-8")
            data, body = parse_article(text)
        except (OSError, UnicodeDecodeError) as e:
            report.error(IssueKind.PARSE, f"Failed to read file: {e}", source=name,
                         code="FILE_READ_ERROR")
            return report
        except FrontmatterError as e:
            report.error(IssueKind.PARSE, f"Failed to parse file: {e}", source=name,
                         code="FRONTMATTER_PARSE_ERROR")
            return report

        report.extend(self.validate_frontmatter(data, source=name))

        declared = data.get("filename")
        if declared is None:
            check_id_matches_filename(data.get("id"), name, report, name)
        elif declared != name:
            report.error(
                IssueKind.CONSISTENCY,
                f"frontmatter filename '{declared}' differs from the file name",
                source=name, field="filename", code="FILENAME_MISMATCH",
            )

        report.extend(self.validate_content(body, source=name))
        return report

    def validate_batch(self, directory: Union[str, Path]) -> ValidationReport:
        """Validate every ``*.mdx`` file of a staging directory, in name order."""
        directory = Path(directory)
        report = ValidationReport()

        if not directory.is_dir():
            report.error(IssueKind.PARSE, f"Directory not found: {directory}",
                         source=str(directory), code="DIRECTORY_NOT_FOUND")
            return report

        files = sorted(p for p in directory.glob("*.mdx") if p.is_file())
        if not files:
            logger.warning(f"No MDX files found in {directory}")
            return report

        logger.info(f"Validating {len(files)} MDX files in {directory}")
        for file_path in files:
            file_report = self.validate_file(file_path)
            if file_report.ok:
                logger.info(f"  ✅ {file_path.name}")
            else:
                logger.error(f"  ❌ {file_path.name}: {len(file_report.errors)} error(s)")
            report.extend(file_report)
        return report


def validate_frontmatter(data: Dict[str, Any], schema: Optional[ContentSchema] = None,
                         category_config: Optional[CategoryConfig] = None,
                         source: Optional[str] = None) -> ValidationReport:
    return ContentValidator(schema, category_config).validate_frontmatter(data, source)


def validate_content(body: str, schema: Optional[ContentSchema] = None,
                     source: Optional[str] = None) -> ValidationReport:
    return ContentValidator(schema).validate_content(body, source)


def validate_batch(directory: Union[str, Path], schema: Optional[ContentSchema] = None,
                   category_config: Optional[CategoryConfig] = None) -> ValidationReport:
    return ContentValidator(schema, category_config).validate_batch(directory)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for staged content validation."""
    import argparse

    from config import ConfigError, load_category_config, load_content_schema
    from observability.logging import setup_logging

    parser = argparse.ArgumentParser(description="Validate staged MDX articles before promotion")
    parser.add_argument("staging_dir", help="Directory containing staged .mdx files")
    parser.add_argument("--schema", help="Content schema document (YAML or JSON)")
    parser.add_argument("--categories", help="Category configuration (JSON or YAML)")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    parser.add_argument("--log-level", default="INFO", help="Log level")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, use_json=args.json_logs,
                  stream=sys.stderr if args.format == "json" else None)

    try:
        schema = load_content_schema(args.schema)
        categories = load_category_config(args.categories) if args.categories else None
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    report = validate_batch(args.staging_dir, schema, categories)

    if args.format == "json":
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(report.format_report("Content validation"))
        if report.ok:
            print("\n✅ Validation successful! Content is ready for production.")
        else:
            print("\n❌ Validation failed! Content cannot be promoted to production.")

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
