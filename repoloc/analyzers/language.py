"""Language classification and per-language aggregation."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List

from ..models import FileStat, LanguageStat


class LanguageCategory(str, Enum):
    PROGRAMMING = "programming"
    DATA = "data"
    DOCUMENTATION = "documentation"
    OTHER = "other"


DATA_LANGUAGES: FrozenSet[str] = frozenset(
    {
        "JSON",
        "XML",
        "YAML",
        "TOML",
        "INI",
        "Properties File",
        "CSV",
        "TSV",
        "Protocol Buffers",
        "Thrift",
        "GraphQL",
        "HCL",
        "Jsonnet",
        "Dhall",
        "Nix",
        "Plist",
        "XAML",
        "SVG",
        "Dockerfile",
        "Docker Compose",
        "Kubernetes",
        "Terraform",
        "Ansible",
        "Puppet",
        "SaltStack",
        "Vagrantfile",
        "Gemfile",
        "Podfile",
        "Brewfile",
        "EditorConfig",
        "gitignore",
        "gitattributes",
        "npmrc",
        "Cargo Lock",
        "Cython",
    }
)

DOCUMENTATION_LANGUAGES: FrozenSet[str] = frozenset(
    {
        "Markdown",
        "Plain Text",
        "Text",
        "reStructuredText",
        "AsciiDoc",
        "Org",
        "LaTeX",
        "TeX",
        "Groff",
        "troff",
        "POD",
        "RDoc",
        "License",
        "Readme",
        "Changelog",
        "AUTHORS",
        "CONTRIBUTORS",
        "COPYING",
        "TODO",
        "NOTICE",
    }
)


def classify(language: str) -> LanguageCategory:
    """Return the category for ``language``; unknown names are programming languages."""
    if is_data_language(language):
        return LanguageCategory.DATA
    if is_documentation_language(language):
        return LanguageCategory.DOCUMENTATION
    return LanguageCategory.PROGRAMMING


def is_data_language(language: str) -> bool:
    return language in DATA_LANGUAGES


def is_documentation_language(language: str) -> bool:
    return language in DOCUMENTATION_LANGUAGES


def should_include(language: str, include_data: bool, include_doc: bool) -> bool:
    """Decide whether files of ``language`` appear in a view with the given policy."""
    category = classify(language)
    if category is LanguageCategory.DATA:
        return include_data
    if category is LanguageCategory.DOCUMENTATION:
        return include_doc
    return True


def filter_files(
    files: Iterable[FileStat], include_data: bool, include_doc: bool
) -> List[FileStat]:
    return [
        file for file in files if should_include(file.language, include_data, include_doc)
    ]


def calculate_language_stats(files: Iterable[FileStat]) -> List[LanguageStat]:
    """Aggregate per-language totals over ``files`` sorted by line count, largest first.

    Files without a language are skipped. Percentages are shares of the total
    line count across all languages present.
    """
    stats: Dict[str, LanguageStat] = {}
    total_lines = 0

    for file in files:
        if not file.language:
            continue
        stat = stats.get(file.language)
        if stat is None:
            stat = stats[file.language] = LanguageStat(language=file.language)
        lines = file.lines
        stat.files += 1
        stat.lines += lines
        stat.code += file.code
        stat.comments += file.comments
        stat.blanks += file.blanks
        total_lines += lines

    for stat in stats.values():
        stat.percentage = stat.lines / total_lines * 100 if total_lines > 0 else 0.0

    return sorted(stats.values(), key=lambda stat: stat.lines, reverse=True)


__all__ = [
    "DATA_LANGUAGES",
    "DOCUMENTATION_LANGUAGES",
    "LanguageCategory",
    "calculate_language_stats",
    "classify",
    "filter_files",
    "is_data_language",
    "is_documentation_language",
    "should_include",
]
