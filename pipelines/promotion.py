"""Content promotion pipeline for guidegate.

Moves a validated staging batch into the production content store. The batch
is validated as a whole first; nothing is written unless the report has zero
errors. The merge then runs as an ordered sequence of steps:

    copy     staged files -> verified temporaries beside the production files
    commit   temporaries renamed onto their final names
    publish  staged index written over the production index (point of no return)
    cleanup  staged originals removed

Until publish, the production index references nothing new, so a reader of
the published index never sees a missing file. Staging is only cleared after
every file is committed and the index is published.
"""

import hashlib
import json
import logging
import os
import shutil
import sys
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from config import ContentLayout, load_category_config
from indexer.article_schema import CategoryConfig
from indexer.content_schema import ContentSchema
from indexer.content_validator import ContentValidator
from indexer.index_validator import record_label, validate_index
from indexer.validation_report import IssueKind, ValidationReport

logger = logging.getLogger(__name__)

ARTICLE_SUFFIX = ".mdx"
TEMP_SUFFIX = ".promoting"


class PromotionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REJECTED = "rejected"
    MERGING = "merging"
    PUBLISHED = "published"
    FAILED = "failed"


class MergeStep(str, Enum):
    COPY = "copy"
    COMMIT = "commit"
    PUBLISH = "publish"
    CLEANUP = "cleanup"


@dataclass
class PromotionResult:
    """Outcome of one promotion attempt."""
    state: PromotionState = PromotionState.IDLE
    report: ValidationReport = field(default_factory=ValidationReport)
    staged_files: List[str] = field(default_factory=list)
    has_index_update: bool = False
    promoted_files: List[str] = field(default_factory=list)
    index_published: bool = False
    staging_cleared: bool = False
    failed_step: Optional[MergeStep] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'staged_files': list(self.staged_files),
            'has_index_update': self.has_index_update,
            'promoted_files': list(self.promoted_files),
            'index_published': self.index_published,
            'staging_cleared': self.staging_cleared,
            'failed_step': self.failed_step.value if self.failed_step else None,
            'error': self.error,
            'report': self.report.to_dict()
        }

    def summary(self) -> str:
        lines = [f"State: {self.state.value.upper()}"]
        lines.append(f"Articles promoted: {len(self.promoted_files)} of {len(self.staged_files)}")
        lines.append(f"Index updated: {'yes' if self.index_published else 'no'}")
        if self.failed_step:
            lines.append(f"Failed step: {self.failed_step.value}")
        if self.error:
            lines.append(f"Error: {self.error}")
        return "\n".join(lines)


class PromotionError(Exception):
    """Base class for promotion failures. Carries the attempt's result."""

    def __init__(self, message: str, result: PromotionResult):
        super().__init__(message)
        self.result = result


class ValidationFailed(PromotionError):
    """The staging batch has validation errors; nothing was written."""

    def __init__(self, report: ValidationReport, result: PromotionResult):
        super().__init__(f"Validation failed with {len(report.errors)} error(s)", result)
        self.report = report


class MergeError(PromotionError):
    """A file copy, rename, index write or cleanup failed during the merge."""

    def __init__(self, step: MergeStep, path: Union[str, Path], cause: Exception,
                 result: PromotionResult):
        super().__init__(f"{step.value} failed for {path}: {cause}", result)
        self.step = step
        self.path = str(path)
        self.cause = cause


def file_digest(path: Union[str, Path]) -> str:
    """SHA-256 of a file's bytes."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(65536), b""):
            digest.update(block)
    return digest.hexdigest()


def write_atomic(path: Union[str, Path], data: bytes) -> None:
    """Replace ``path`` with ``data`` via a synced temp file and os.replace."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".json.tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, str(path))
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _remove_quietly(paths: List[Path]) -> None:
    for path in paths:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary file {path}: {e}")


class ContentPromoter:
    """Validates and promotes the staging batch of one content repository."""

    def __init__(self, layout: ContentLayout, schema: Optional[ContentSchema] = None,
                 category_config: Optional[CategoryConfig] = None):
        self.layout = layout
        self.schema = schema or ContentSchema()
        self.category_config = category_config

    def find_batch(self) -> Tuple[List[Path], Optional[Path]]:
        """Staged article files (sorted) and the staged index update, if any."""
        staging = self.layout.staging_guides
        files = sorted(staging.glob(f"*{ARTICLE_SUFFIX}")) if staging.is_dir() else []
        index_path = self.layout.staging_index
        return files, index_path if index_path.is_file() else None

    def _categories(self) -> Optional[CategoryConfig]:
        if self.category_config is None and self.layout.categories.is_file():
            self.category_config = load_category_config(self.layout.categories)
        return self.category_config

    def validate_batch(self, files: List[Path],
                       index_path: Optional[Path]) -> Tuple[ValidationReport, Optional[bytes]]:
        """Validate staged files, the staged index and how they reference each other.

        Returns the report and the raw bytes of the staged index, which are
        exactly what gets published on success.
        """
        categories = self._categories()
        validator = ContentValidator(self.schema, categories)
        report = ValidationReport()

        for path in files:
            report.extend(validator.validate_file(path))

        if index_path is None:
            return report, None

        source = index_path.name
        try:
            raw = index_path.read_bytes()
            index = json.loads(raw.decode("utf-8"))
        except (OSError, ValueError) as e:
            report.error(IssueKind.PARSE, f"Failed to parse staged index: {e}",
                         source=source, code="INDEX_PARSE_ERROR")
            return report, None

        report.extend(validate_index(index, self.schema, categories))
        self._cross_check(index, files, report, source)
        return report, raw

    def _cross_check(self, index: Any, files: List[Path], report: ValidationReport,
                     source: str) -> None:
        if not isinstance(index, dict) or not isinstance(index.get("articles"), list):
            return

        staged = {path.name for path in files}
        referenced = set()
        for position, record in enumerate(index["articles"]):
            if not isinstance(record, dict) or not isinstance(record.get("filename"), str):
                continue
            filename = record["filename"]
            referenced.add(filename)
            if filename in staged or (self.layout.production_guides / filename).is_file():
                continue
            report.error(
                IssueKind.CONSISTENCY,
                f"{record_label(record, position)} references '{filename}', "
                "which is neither staged nor in production",
                source=source, field="filename", code="UNRESOLVED_FILENAME",
                suggestion="Stage the article file or remove the record from the index"
            )

        for name in sorted(staged - referenced):
            report.warn(
                IssueKind.CONSISTENCY,
                "Staged article is not listed in the staged index update",
                source=name, code="UNINDEXED_ARTICLE",
                suggestion="Add a record for this article to the index update"
            )

    def promote(self) -> PromotionResult:
        """Validate the staging batch and merge it into production.

        Raises:
            ValidationFailed: the batch has errors; staging and production untouched.
            MergeError: a merge step failed; ``result`` records how far it got.
        """
        result = PromotionResult()
        files, index_path = self.find_batch()
        result.staged_files = [path.name for path in files]
        result.has_index_update = index_path is not None

        if not files and index_path is None:
            logger.info("No content found in staging. Nothing to promote.")
            return result

        logger.info(f"Found {len(files)} article(s) and "
                    f"{1 if index_path else 0} index update in staging")

        result.state = PromotionState.VALIDATING
        report, index_bytes = self.validate_batch(files, index_path)
        result.report = report

        if not report.ok:
            result.state = PromotionState.REJECTED
            logger.error(f"Validation failed with {len(report.errors)} error(s); "
                         "promotion stopped, staging left untouched")
            raise ValidationFailed(report, result)

        if report.warnings:
            logger.warning(f"Validation passed with {len(report.warnings)} warning(s)")

        result.state = PromotionState.MERGING
        self._merge(files, index_path, index_bytes, result)
        result.state = PromotionState.PUBLISHED
        logger.info(f"Promotion complete: {len(result.promoted_files)} article(s) promoted, "
                    f"index {'updated' if result.index_published else 'unchanged'}")
        return result

    def _fail(self, result: PromotionResult, step: MergeStep, path: Union[str, Path],
              cause: Exception) -> MergeError:
        result.state = PromotionState.FAILED
        result.failed_step = step
        result.error = f"{path}: {cause}"
        logger.error(f"Merge step '{step.value}' failed for {path}: {cause}",
                     extra={'step': step.value, 'path': str(path)})
        return MergeError(step, path, cause, result)

    def _merge(self, files: List[Path], index_path: Optional[Path],
               index_bytes: Optional[bytes], result: PromotionResult) -> None:
        production = self.layout.production_guides

        # copy: reversible, production names untouched
        pending: List[Tuple[Path, Path]] = []
        current = production
        try:
            production.mkdir(parents=True, exist_ok=True)
            for source in files:
                current = source
                temp = production / f".{source.name}{TEMP_SUFFIX}"
                pending.append((temp, production / source.name))
                shutil.copyfile(source, temp)
                with open(temp, "rb") as f:
                    os.fsync(f.fileno())
                if file_digest(temp) != file_digest(source):
                    raise OSError(f"checksum mismatch after copying {source.name}")
                logger.debug(f"Copied {source.name}")
        except OSError as e:
            _remove_quietly([temp for temp, _ in pending])
            raise self._fail(result, MergeStep.COPY, current, e)

        # commit
        for position, (temp, dest) in enumerate(pending):
            try:
                os.replace(temp, dest)
            except OSError as e:
                _remove_quietly([t for t, _ in pending[position:]])
                raise self._fail(result, MergeStep.COMMIT, dest, e)
            result.promoted_files.append(dest.name)
            logger.info(f"Promoted: {dest.name}")

        # publish: point of no return
        if index_bytes is not None:
            try:
                write_atomic(self.layout.production_index, index_bytes)
            except OSError as e:
                raise self._fail(result, MergeStep.PUBLISH, self.layout.production_index, e)
            result.index_published = True
            logger.info("Updated article index")

        # cleanup
        staged = list(files) + ([index_path] if index_path is not None else [])
        for path in staged:
            try:
                path.unlink()
            except OSError as e:
                raise self._fail(result, MergeStep.CLEANUP, path, e)
        result.staging_cleared = True
        logger.info("Staging cleared")


def promote(content_root: Union[str, Path], schema: Optional[ContentSchema] = None,
            category_config: Optional[CategoryConfig] = None) -> PromotionResult:
    """Promote the staging batch of the content repository at ``content_root``."""
    layout = ContentLayout(root=Path(content_root))
    return ContentPromoter(layout, schema, category_config).promote()


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for content promotion."""
    import argparse

    from config import ConfigError, ContentSettings, load_content_schema
    from observability.logging import setup_logging

    settings = ContentSettings.from_env()

    parser = argparse.ArgumentParser(description="Validate staged content and promote it to production")
    parser.add_argument("content_root", nargs="?", default=str(settings.content_root),
                        help="Content repository root")
    parser.add_argument("--schema", default=settings.schema_path,
                        help="Content schema document (YAML or JSON)")
    parser.add_argument("--categories", help="Category configuration; defaults to config/categories.json")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level")
    parser.add_argument("--json-logs", action="store_true", default=settings.log_json,
                        help="Emit JSON log lines")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, use_json=args.json_logs,
                  stream=sys.stderr if args.format == "json" else None)

    try:
        schema = load_content_schema(args.schema)
        categories = load_category_config(args.categories) if args.categories else None
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    try:
        result = promote(args.content_root, schema, categories)
        exit_code = 0
    except ValidationFailed as e:
        result = e.result
        exit_code = 1
        if args.format == "text":
            print(e.report.format_report("Content validation"))
            print("\n❌ Validation failed! Stopping promotion.")
    except MergeError as e:
        result = e.result
        exit_code = 1
        if args.format == "text":
            print(f"❌ Error promoting content: {e}")
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2))
    else:
        if result.state == PromotionState.IDLE:
            print("⚠️  No content found in staging. Nothing to promote.")
        elif result.state == PromotionState.PUBLISHED:
            print(result.report.format_report("Content validation"))
            print("\n🎉 Content promotion successful!")
        print(result.summary())

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
