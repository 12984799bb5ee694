"""Pipelines package for guidegate.

Provides promotion of validated staging batches into production.
"""

from .promotion import (
    ContentPromoter,
    MergeError,
    MergeStep,
    PromotionError,
    PromotionResult,
    PromotionState,
    ValidationFailed,
    promote,
    write_atomic
)

__all__ = [
    'ContentPromoter',
    'MergeError',
    'MergeStep',
    'PromotionError',
    'PromotionResult',
    'PromotionState',
    'ValidationFailed',
    'promote',
    'write_atomic'
]
