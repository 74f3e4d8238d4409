"""Core data models shared across repoloc components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

NODE_DIR = "dir"
NODE_FILE = "file"


@dataclass(frozen=True)
class FileStat:
    """Line counts for an individual repository file."""

    path: str
    language: str
    code: int
    comments: int
    blanks: int

    @property
    def lines(self) -> int:
        return self.code + self.comments + self.blanks

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "path": self.path,
            "code": self.code,
            "comments": self.comments,
            "blanks": self.blanks,
        }
        if self.language:
            data["language"] = self.language
        return data


@dataclass
class Summary:
    """Aggregate counters attached to every tree node."""

    lines: int = 0
    code: int = 0
    comments: int = 0
    blanks: int = 0

    def add(self, file: FileStat) -> None:
        self.code += file.code
        self.comments += file.comments
        self.blanks += file.blanks
        self.lines += file.code + file.comments + file.blanks

    def to_dict(self) -> Dict[str, int]:
        return {
            "lines": self.lines,
            "code": self.code,
            "comments": self.comments,
            "blanks": self.blanks,
        }


@dataclass
class Node:
    """Entry in the directory tree produced for a repository."""

    name: str
    type: str
    path: str
    language: str = ""
    stats: Summary = field(default_factory=Summary)
    children: Dict[str, "Node"] = field(default_factory=dict)

    @property
    def is_dir(self) -> bool:
        return self.type == NODE_DIR

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "path": self.path,
        }
        if self.language:
            data["language"] = self.language
        data["stats"] = self.stats.to_dict()
        data["children"] = {key: child.to_dict() for key, child in self.children.items()}
        return data


@dataclass
class LanguageStat:
    """Depth-independent totals for one language."""

    language: str
    files: int = 0
    lines: int = 0
    code: int = 0
    comments: int = 0
    blanks: int = 0
    percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "files": self.files,
            "lines": self.lines,
            "code": self.code,
            "comments": self.comments,
            "blanks": self.blanks,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class RepoMeta:
    """Repository metadata reported by the hosting API."""

    size_kb: int
    default_branch: str

    @property
    def size_mb(self) -> int:
        return self.size_kb // 1024


@dataclass
class AnalyzeResult:
    """Outcome of a single analysis request."""

    source: str
    repo: str
    branch: str
    timestamp: int
    data: Node
    languages: List[LanguageStat]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "repo": self.repo,
            "branch": self.branch,
            "timestamp": self.timestamp,
            "data": self.data.to_dict(),
            "languages": [stat.to_dict() for stat in self.languages],
        }


__all__ = [
    "AnalyzeResult",
    "FileStat",
    "LanguageStat",
    "NODE_DIR",
    "NODE_FILE",
    "Node",
    "RepoMeta",
    "Summary",
]
