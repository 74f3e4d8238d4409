"""Aggregation passes over per-file statistics."""

from __future__ import annotations

from .language import (
    DATA_LANGUAGES,
    DOCUMENTATION_LANGUAGES,
    LanguageCategory,
    calculate_language_stats,
    classify,
    filter_files,
    is_data_language,
    is_documentation_language,
    should_include,
)
from .tree import build_tree

__all__ = [
    "DATA_LANGUAGES",
    "DOCUMENTATION_LANGUAGES",
    "LanguageCategory",
    "build_tree",
    "calculate_language_stats",
    "classify",
    "filter_files",
    "is_data_language",
    "is_documentation_language",
    "should_include",
]
