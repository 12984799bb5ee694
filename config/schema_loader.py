"""Loaders for the content schema and the category configuration."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from indexer.article_schema import CategoryConfig, ConfigError
from indexer.content_schema import ContentSchema

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).parent / "content_schema.yaml"

# Defaults every schema document is merged over
DEFAULT_SCHEMA = ContentSchema().model_dump()


def _get_default_schema_path() -> Path:
    """Get the schema document path from the environment or known locations."""
    possible_paths = [
        os.environ.get('GUIDEGATE_SCHEMA_PATH'),
        os.path.join(os.getcwd(), 'config', 'content_schema.yaml'),
        os.path.join(os.getcwd(), 'config', 'content-schema.json'),
    ]

    for path in possible_paths:
        if path and os.path.exists(path):
            return Path(path)

    return DEFAULT_SCHEMA_PATH


def read_document(path: Union[str, Path], description: str) -> Any:
    """Read a JSON or YAML document, raising ConfigError on failure."""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                return json.load(f)
            return yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load {description} from {path}: {e}") from e


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _normalize_legacy_shape(document: Dict[str, Any]) -> Dict[str, Any]:
    """Accept the older JSON schema layout alongside the flat one.

    Older documents nest required fields under ``article_schema`` and
    ``structure``; those keys are mapped onto the flat fields.
    """
    document = dict(document)
    article_schema = document.pop('article_schema', None)
    if isinstance(article_schema, dict) and 'frontmatter_required' in article_schema:
        document.setdefault('frontmatter_required', article_schema['frontmatter_required'])

    structure = document.pop('structure', None)
    if isinstance(structure, dict):
        if 'required_fields' in structure:
            document.setdefault('index_required', structure['required_fields'])
        items = (
            structure.get('validation_rules', {})
            .get('articles', {})
            .get('items', {})
        )
        if isinstance(items, dict) and 'required_fields' in items:
            document.setdefault('record_required', items['required_fields'])
    return document


def load_content_schema(schema_path: Optional[Union[str, Path]] = None) -> ContentSchema:
    """Load a schema document merged over the defaults.

    An explicit path that cannot be read is an error; without one the
    default search locations are tried and the built-in defaults used last.
    """
    path = Path(schema_path) if schema_path else _get_default_schema_path()

    if not path.exists():
        if schema_path:
            raise ConfigError(f"Schema file not found: {path}")
        logger.info(f"Schema file not found at {path}, using defaults")
        return ContentSchema()

    document = read_document(path, "content schema") or {}
    if not isinstance(document, dict):
        raise ConfigError(f"Content schema in {path} must be a mapping")

    merged = _deep_merge(DEFAULT_SCHEMA, _normalize_legacy_shape(document))
    try:
        schema = ContentSchema.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid content schema in {path}: {e}") from e

    logger.debug(f"Loaded content schema {schema.version} from {path}")
    return schema


def load_category_config(categories_path: Union[str, Path]) -> CategoryConfig:
    """Load the category/subcategory configuration document."""
    document = read_document(categories_path, "categories")
    if isinstance(document, list):
        document = {'categories': document}
    if not isinstance(document, dict):
        raise ConfigError(f"Category configuration in {categories_path} must be an object or list")

    try:
        return CategoryConfig.model_validate(document)
    except ValidationError as e:
        raise ConfigError(f"Invalid category configuration in {categories_path}: {e}") from e
