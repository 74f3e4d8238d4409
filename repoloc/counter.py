"""Per-file line counting: language detection plus code/comment/blank classification."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import CountError, FetchTimeoutError
from .logging import get_logger
from .models import FileStat


@dataclass(frozen=True)
class LanguageSyntax:
    """Comment markers for one language."""

    name: str
    line_comments: Tuple[str, ...] = ()
    block_comments: Tuple[Tuple[str, str], ...] = ()


_C_STYLE = (("//",), (("/*", "*/"),))
_HASH = (("#",), ())
_XML_BLOCK = ((), (("<!--", "-->"),))


def _syntax(name: str, style: Tuple[Tuple[str, ...], Tuple[Tuple[str, str], ...]] = ((), ())) -> LanguageSyntax:
    return LanguageSyntax(name=name, line_comments=style[0], block_comments=style[1])


_LANGUAGES: Dict[str, LanguageSyntax] = {
    syntax.name: syntax
    for syntax in (
        LanguageSyntax("Python", ("#",), (('"""', '"""'), ("'''", "'''"))),
        LanguageSyntax("Cython", ("#",), (('"""', '"""'), ("'''", "'''"))),
        _syntax("Go", _C_STYLE),
        _syntax("JavaScript", _C_STYLE),
        _syntax("JSX", _C_STYLE),
        _syntax("TypeScript", _C_STYLE),
        _syntax("Java", _C_STYLE),
        _syntax("Kotlin", _C_STYLE),
        _syntax("Scala", _C_STYLE),
        _syntax("Rust", _C_STYLE),
        _syntax("C", _C_STYLE),
        _syntax("C Header", _C_STYLE),
        _syntax("C++", _C_STYLE),
        _syntax("C++ Header", _C_STYLE),
        _syntax("C#", _C_STYLE),
        _syntax("Swift", _C_STYLE),
        _syntax("Objective-C", _C_STYLE),
        _syntax("Objective-C++", _C_STYLE),
        _syntax("Dart", _C_STYLE),
        _syntax("Zig", (("//",), ())),
        _syntax("Protocol Buffers", _C_STYLE),
        _syntax("Thrift", _C_STYLE),
        _syntax("Jsonnet", _C_STYLE),
        LanguageSyntax("PHP", ("//", "#"), (("/*", "*/"),)),
        LanguageSyntax("CSS", (), (("/*", "*/"),)),
        LanguageSyntax("SCSS", ("//",), (("/*", "*/"),)),
        LanguageSyntax("Less", ("//",), (("/*", "*/"),)),
        LanguageSyntax("Vue", ("//",), (("<!--", "-->"), ("/*", "*/"))),
        LanguageSyntax("Svelte", ("//",), (("<!--", "-->"), ("/*", "*/"))),
        _syntax("HTML", _XML_BLOCK),
        _syntax("XML", _XML_BLOCK),
        _syntax("XAML", _XML_BLOCK),
        _syntax("SVG", _XML_BLOCK),
        _syntax("Plist", _XML_BLOCK),
        LanguageSyntax("Ruby", ("#",), (("=begin", "=end"),)),
        LanguageSyntax("Perl", ("#",), (("=pod", "=cut"),)),
        _syntax("Shell", _HASH),
        _syntax("PowerShell", (("#",), (("<#", "#>"),))),
        _syntax("Batch", (("REM", "rem", "::"), ())),
        _syntax("Makefile", _HASH),
        _syntax("CMake", _HASH),
        _syntax("Dockerfile", _HASH),
        _syntax("YAML", _HASH),
        _syntax("TOML", _HASH),
        _syntax("INI", ((";", "#"), ())),
        _syntax("Properties File", (("#", "!"), ())),
        _syntax("HCL", (("#", "//"), (("/*", "*/"),))),
        _syntax("Terraform", (("#", "//"), (("/*", "*/"),))),
        _syntax("Nix", (("#",), (("/*", "*/"),))),
        _syntax("GraphQL", _HASH),
        _syntax("R", _HASH),
        _syntax("Julia", (("#",), (("#=", "=#"),))),
        _syntax("Elixir", _HASH),
        _syntax("Crystal", _HASH),
        _syntax("Lua", (("--",), (("--[[", "]]"),))),
        _syntax("Haskell", (("--",), (("{-", "-}"),))),
        _syntax("SQL", (("--",), (("/*", "*/"),))),
        _syntax("Erlang", (("%",), ())),
        _syntax("TeX", (("%",), ())),
        _syntax("LaTeX", (("%",), ())),
        _syntax("Clojure", ((";",), ())),
        _syntax("Lisp", ((";",), ())),
        _syntax("OCaml", ((), (("(*", "*)"),))),
        _syntax("Vim Script", (('"',), ())),
        _syntax("gitignore", _HASH),
        _syntax("gitattributes", _HASH),
        _syntax("EditorConfig", ((";", "#"), ())),
        _syntax("npmrc", ((";", "#"), ())),
        _syntax("Gemfile", _HASH),
        _syntax("Podfile", _HASH),
        _syntax("Vagrantfile", _HASH),
        _syntax("Cargo Lock", _HASH),
        _syntax("Markdown"),
        _syntax("reStructuredText"),
        _syntax("AsciiDoc", (("//",), ())),
        _syntax("Plain Text"),
        _syntax("JSON"),
        _syntax("CSV"),
        _syntax("TSV"),
    )
}

_LANGUAGE_BY_SUFFIX: Dict[str, str] = {
    ".py": "Python",
    ".pyi": "Python",
    ".pyx": "Cython",
    ".pxd": "Cython",
    ".go": "Go",
    ".js": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".jsx": "JSX",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".mts": "TypeScript",
    ".java": "Java",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".scala": "Scala",
    ".rs": "Rust",
    ".c": "C",
    ".h": "C Header",
    ".cpp": "C++",
    ".cc": "C++",
    ".cxx": "C++",
    ".hpp": "C++ Header",
    ".hh": "C++ Header",
    ".cs": "C#",
    ".swift": "Swift",
    ".m": "Objective-C",
    ".mm": "Objective-C++",
    ".dart": "Dart",
    ".zig": "Zig",
    ".proto": "Protocol Buffers",
    ".thrift": "Thrift",
    ".jsonnet": "Jsonnet",
    ".libsonnet": "Jsonnet",
    ".php": "PHP",
    ".css": "CSS",
    ".scss": "SCSS",
    ".less": "Less",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".html": "HTML",
    ".htm": "HTML",
    ".xml": "XML",
    ".xaml": "XAML",
    ".svg": "SVG",
    ".plist": "Plist",
    ".rb": "Ruby",
    ".pl": "Perl",
    ".pm": "Perl",
    ".sh": "Shell",
    ".bash": "Shell",
    ".zsh": "Shell",
    ".ps1": "PowerShell",
    ".bat": "Batch",
    ".cmd": "Batch",
    ".mk": "Makefile",
    ".cmake": "CMake",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".toml": "TOML",
    ".ini": "INI",
    ".cfg": "INI",
    ".properties": "Properties File",
    ".hcl": "HCL",
    ".tf": "Terraform",
    ".nix": "Nix",
    ".graphql": "GraphQL",
    ".gql": "GraphQL",
    ".r": "R",
    ".jl": "Julia",
    ".ex": "Elixir",
    ".exs": "Elixir",
    ".cr": "Crystal",
    ".lua": "Lua",
    ".hs": "Haskell",
    ".sql": "SQL",
    ".erl": "Erlang",
    ".tex": "TeX",
    ".clj": "Clojure",
    ".lisp": "Lisp",
    ".ml": "OCaml",
    ".vim": "Vim Script",
    ".md": "Markdown",
    ".markdown": "Markdown",
    ".rst": "reStructuredText",
    ".adoc": "AsciiDoc",
    ".txt": "Plain Text",
    ".json": "JSON",
    ".csv": "CSV",
    ".tsv": "TSV",
}

_LANGUAGE_BY_FILENAME: Dict[str, str] = {
    "Dockerfile": "Dockerfile",
    "Makefile": "Makefile",
    "makefile": "Makefile",
    "GNUmakefile": "Makefile",
    "CMakeLists.txt": "CMake",
    "Gemfile": "Gemfile",
    "Podfile": "Podfile",
    "Vagrantfile": "Vagrantfile",
    "Cargo.lock": "Cargo Lock",
    ".gitignore": "gitignore",
    ".gitattributes": "gitattributes",
    ".editorconfig": "EditorConfig",
    ".npmrc": "npmrc",
    "Rakefile": "Ruby",
}


def detect_language(path: Path | str) -> Optional[str]:
    """Return the language for ``path`` by file name, then suffix; ``None`` if unknown."""
    name = Path(path).name
    if name in _LANGUAGE_BY_FILENAME:
        return _LANGUAGE_BY_FILENAME[name]
    if name.startswith("Dockerfile."):
        return "Dockerfile"
    return _LANGUAGE_BY_SUFFIX.get(Path(name).suffix.lower())


def language_syntax(language: str) -> LanguageSyntax:
    return _LANGUAGES.get(language, LanguageSyntax(language))


def count_lines(text: str, syntax: LanguageSyntax) -> Tuple[int, int, int]:
    """Return ``(code, comments, blanks)`` for ``text`` under ``syntax``."""
    code = comments = blanks = 0
    closing: Optional[str] = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            blanks += 1
            continue

        if closing is not None:
            end = line.find(closing)
            if end < 0:
                comments += 1
                continue
            rest = line[end + len(closing):].strip()
            closing = None
            if _is_code(rest, syntax):
                code += 1
                closing = _open_block(rest, syntax)
            else:
                comments += 1
            continue

        if syntax.line_comments and line.startswith(syntax.line_comments):
            comments += 1
            continue

        opened = _leading_block(line, syntax)
        if opened is not None:
            start, end_marker = opened
            end = line.find(end_marker, len(start))
            if end < 0:
                closing = end_marker
                comments += 1
                continue
            rest = line[end + len(end_marker):].strip()
            if _is_code(rest, syntax):
                code += 1
                closing = _open_block(rest, syntax)
            else:
                comments += 1
            continue

        code += 1
        closing = _open_block(line, syntax)

    return code, comments, blanks


def _leading_block(line: str, syntax: LanguageSyntax) -> Optional[Tuple[str, str]]:
    for start, end in syntax.block_comments:
        if line.startswith(start):
            return start, end
    return None


def _is_code(rest: str, syntax: LanguageSyntax) -> bool:
    if not rest:
        return False
    if syntax.line_comments and rest.startswith(syntax.line_comments):
        return False
    return True


def _open_block(line: str, syntax: LanguageSyntax) -> Optional[str]:
    """Return the closing marker if ``line`` leaves a block comment open."""
    if not syntax.block_comments:
        return None
    position = 0
    closing: Optional[str] = None
    while position < len(line):
        if closing is not None:
            end = line.find(closing, position)
            if end < 0:
                return closing
            position = end + len(closing)
            closing = None
            continue
        found = [
            (index, start, end)
            for start, end in syntax.block_comments
            for index in (line.find(start, position),)
            if index >= 0
        ]
        if not found:
            return None
        index, start, end = min(found)
        # Anything after a line comment marker is comment text.
        line_comment = _first_index(line, syntax.line_comments, position)
        if line_comment is not None and line_comment < index:
            return None
        position = index + len(start)
        closing = end
    return closing


def _first_index(line: str, markers: Tuple[str, ...], position: int) -> Optional[int]:
    indexes = [index for index in (line.find(marker, position) for marker in markers) if index >= 0]
    return min(indexes) if indexes else None


def build_exclude_matcher(patterns: Iterable[str]) -> Callable[[str], bool]:
    """Return a predicate matching directory names against ``patterns``."""
    cleaned = tuple(pattern.strip().strip("/") for pattern in patterns if pattern.strip().strip("/"))
    if not cleaned:
        return lambda _name: False

    def _matches(name: str) -> bool:
        return any(fnmatchcase(name, pattern) for pattern in cleaned)

    return _matches


class LineCounter:
    """Walks a checkout and produces one :class:`FileStat` per recognised file."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.logger = get_logger("counter")

    def count(
        self,
        root: Path | str,
        *,
        exclude_dirs: Sequence[str] = (),
        deadline: Optional[float] = None,
    ) -> List[FileStat]:
        root_path = Path(root)
        if not root_path.is_dir():
            raise CountError(f"Checkout not found: {root_path}")

        excluded = build_exclude_matcher(exclude_dirs)
        if exclude_dirs:
            self.logger.info("[Filter] Excluding directories: %s", ", ".join(exclude_dirs))

        stats: List[FileStat] = []
        for path, language in self._iter_files(root_path, excluded):
            if deadline is not None and self._clock() > deadline:
                raise FetchTimeoutError("line counting exceeded the request timeout")
            text = _read_text(path)
            if text is None:
                continue
            code, comments, blanks = count_lines(text, language_syntax(language))
            stats.append(
                FileStat(
                    path=path.relative_to(root_path).as_posix(),
                    language=language,
                    code=code,
                    comments=comments,
                    blanks=blanks,
                )
            )
        self.logger.info("[Process] Analysis done. Total files: %d", len(stats))
        return stats

    def _iter_files(
        self, root: Path, excluded: Callable[[str], bool]
    ) -> Iterator[Tuple[Path, str]]:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(name for name in dirnames if not excluded(name))
            current_dir = Path(dirpath)
            for filename in sorted(filenames):
                path = current_dir / filename
                if path.is_symlink():
                    continue
                language = detect_language(path)
                if language is None:
                    continue
                yield path, language


def _read_text(path: Path) -> Optional[str]:
    try:
        data = path.read_bytes()
    except OSError:
        return None
    if b"\0" in data:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


__all__ = [
    "LanguageSyntax",
    "LineCounter",
    "build_exclude_matcher",
    "count_lines",
    "detect_language",
    "language_syntax",
]
