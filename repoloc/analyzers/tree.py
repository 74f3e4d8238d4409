"""Fold flat per-file statistics into a depth-bounded directory tree."""

from __future__ import annotations

from typing import Iterable

from ..models import NODE_DIR, NODE_FILE, FileStat, Node

DEFAULT_PROJECT_NAME = "root"


def split_path(path: str) -> list[str]:
    return path.replace("\\", "/").split("/")


def build_tree(files: Iterable[FileStat], max_depth: int, project_name: str = "") -> Node:
    """Return the root of a tree aggregating ``files`` down to ``max_depth`` segments.

    The root always receives every file's counts. Segments past ``max_depth``
    are dropped and their counts stay on the deepest node reached. A node's
    type and language are decided by the first file that creates it.
    """
    root = Node(name=project_name or DEFAULT_PROJECT_NAME, type=NODE_DIR, path="")

    for file in files:
        parts = split_path(file.path)
        current = root
        current.stats.add(file)

        for index, part in enumerate(parts):
            if index >= max_depth:
                break
            child = current.children.get(part)
            if child is None:
                is_last = index == len(parts) - 1
                child = Node(
                    name=part,
                    type=NODE_FILE if is_last else NODE_DIR,
                    path="/".join(parts[: index + 1]),
                    language=file.language if is_last else "",
                )
                current.children[part] = child
            child.stats.add(file)
            current = child

    return root


__all__ = ["DEFAULT_PROJECT_NAME", "build_tree", "split_path"]
