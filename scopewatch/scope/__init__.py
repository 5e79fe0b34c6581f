"""Scope vocabulary and target canonicalization helpers."""

from scopewatch.scope.categories import (
    CATEGORY_ALIASES,
    Category,
    is_unified_category,
    normalize_category,
    unified_categories,
)
from scopewatch.scope.normalize import (
    build_target_category_key,
    normalize_program_url,
    normalize_target,
)

__all__ = [
    "CATEGORY_ALIASES",
    "Category",
    "is_unified_category",
    "normalize_category",
    "unified_categories",
    "build_target_category_key",
    "normalize_program_url",
    "normalize_target",
]
