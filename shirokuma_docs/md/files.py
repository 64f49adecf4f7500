"""Markdown file collection with include/exclude globs."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Sequence

from ..config import BuildConfig
from ..logging import get_logger

logger = get_logger("files")

_EXCLUDED_DIRS = {".git", ".hg", ".svn", ".venv", "__pycache__"}


@lru_cache(maxsize=128)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a ``**``-aware glob into a regex over POSIX relative paths."""
    parts: List[str] = []
    index = 0
    if pattern.startswith("./"):
        pattern = pattern[2:]
    while index < len(pattern):
        char = pattern[index]
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
            continue
        if pattern.startswith("**", index):
            parts.append(".*")
            index += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        index += 1
    return re.compile("".join(parts) + r"\Z")


def glob_match(rel_path: str, pattern: str) -> bool:
    return bool(_compile_glob(pattern).match(rel_path))


def _iter_files(root: Path) -> Iterator[str]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        for filename in sorted(filenames):
            yield f"{rel_dir}/{filename}" if rel_dir else filename


class FileCollector:
    """Walks a source directory and returns the files selected by a build config."""

    def __init__(self, build: BuildConfig | None = None) -> None:
        self.build = build or BuildConfig()

    def collect(self, source_dir: str | Path) -> List[str]:
        """Return relative POSIX paths, grouped by include pattern, without duplicates."""
        root = Path(source_dir).expanduser().resolve()
        if not root.exists():
            raise FileNotFoundError(f"Source directory not found: {source_dir}")
        if not root.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {source_dir}")

        candidates = [
            rel for rel in _iter_files(root) if not self._is_excluded(rel, self.build.exclude)
        ]
        seen = set()
        collected: List[str] = []
        for pattern in self.build.include:
            for rel in candidates:
                if rel in seen or not glob_match(rel, pattern):
                    continue
                seen.add(rel)
                collected.append(rel)
        logger.debug("Collected %d file(s) under %s", len(collected), root)
        return collected

    @staticmethod
    def _is_excluded(rel_path: str, patterns: Sequence[str]) -> bool:
        return any(glob_match(rel_path, pattern) for pattern in patterns)


__all__ = ["FileCollector", "glob_match"]
