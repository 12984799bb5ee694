"""Observability package for guidegate."""

from .logging import ColoredFormatter, JSONFormatter, setup_logging

__all__ = [
    'ColoredFormatter',
    'JSONFormatter',
    'setup_logging'
]
