"""Plain-text rendering of analysis results for the CLI."""

from __future__ import annotations

from typing import Iterable, List

from .models import LanguageStat, Node


def format_number(value: int) -> str:
    return f"{value:,}"


def format_percentage(value: float) -> str:
    return f"{value:.1f}"


def _sorted_children(node: Node) -> List[Node]:
    return sorted(node.children.values(), key=lambda child: (not child.is_dir, child.name.lower()))


def render_tree(root: Node) -> str:
    """Draw ``root`` as an indented tree, directories first, with line counts."""
    rows: List[tuple[str, str]] = [(f"{root.name}/", format_number(root.stats.lines))]

    def _walk(node: Node, prefix: str) -> None:
        children = _sorted_children(node)
        for index, child in enumerate(children):
            last = index == len(children) - 1
            branch = "└── " if last else "├── "
            label = f"{child.name}/" if child.is_dir else child.name
            if child.language:
                label = f"{label} [{child.language}]"
            rows.append((f"{prefix}{branch}{label}", format_number(child.stats.lines)))
            _walk(child, prefix + ("    " if last else "│   "))

    _walk(root, "")
    width = max(len(label) for label, _ in rows)
    count_width = max(len(count) for _, count in rows)
    return "\n".join(f"{label.ljust(width)}  {count.rjust(count_width)}" for label, count in rows)


def render_languages(stats: Iterable[LanguageStat]) -> str:
    """Draw the per-language table, largest language first."""
    header = ("Language", "Files", "Code", "Comments", "Blanks", "Lines", "%")
    rows = [
        (
            stat.language,
            format_number(stat.files),
            format_number(stat.code),
            format_number(stat.comments),
            format_number(stat.blanks),
            format_number(stat.lines),
            format_percentage(stat.percentage),
        )
        for stat in stats
    ]
    if not rows:
        return "No languages detected."
    widths = [max(len(row[column]) for row in [header, *rows]) for column in range(len(header))]
    lines = []
    for row in [header, *rows]:
        cells = [row[0].ljust(widths[0])]
        cells.extend(cell.rjust(widths[column]) for column, cell in enumerate(row) if column)
        lines.append("  ".join(cells))
    lines.insert(1, "  ".join("-" * width for width in widths))
    return "\n".join(lines)


__all__ = ["format_number", "format_percentage", "render_languages", "render_tree"]
