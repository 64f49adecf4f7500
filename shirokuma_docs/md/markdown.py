"""Markdown document model: frontmatter split and heading tree."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

import yaml

from ..constants import HEADING
from ..models import Document, Heading
from .code_blocks import CodeBlockTracker

_FRONTMATTER_DELIMITER = "---"


class FrontmatterError(ValueError):
    """Raised when a YAML frontmatter block cannot be parsed."""


def parse_headings(content: str) -> List[Heading]:
    """Build a nested heading tree from ATX headings outside fenced code."""
    lines = content.split("\n")
    roots: List[Heading] = []
    stack: List[Heading] = []
    tracker = CodeBlockTracker()

    for line_number, line in enumerate(lines, start=1):
        was_in_code = tracker.is_in_code_block()
        tracker.process_line(line)
        if was_in_code or tracker.is_in_code_block():
            continue
        match = HEADING.match(line)
        if not match:
            continue

        heading = Heading(
            level=len(match.group(1)),
            text=match.group(2).strip(),
            start_line=line_number,
            end_line=line_number,
        )
        # Close every open section at the same or deeper level.
        while stack and stack[-1].level >= heading.level:
            stack.pop().end_line = line_number - 1
        if stack:
            stack[-1].children.append(heading)
        else:
            roots.append(heading)
        stack.append(heading)

    for heading in stack:
        heading.end_line = len(lines)
    return roots


def count_lines(content: str) -> int:
    return len(content.split("\n"))


def count_headings(headings: Sequence[Heading]) -> int:
    return sum(1 + count_headings(heading.children) for heading in headings)


def flatten_headings(headings: Sequence[Heading]) -> List[Heading]:
    """Return the heading tree in document (pre-order) order."""
    flat: List[Heading] = []
    for heading in headings:
        flat.append(heading)
        flat.extend(flatten_headings(heading.children))
    return flat


def _split(text: str) -> Tuple[Dict[str, Any], str, int]:
    normalized = text.replace("\r\n", "\n")
    lines = normalized.split("\n")
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return {}, normalized, 0

    for index in range(1, len(lines)):
        if lines[index].strip() != _FRONTMATTER_DELIMITER:
            continue
        raw = "\n".join(lines[1:index])
        try:
            data = yaml.safe_load(raw) if raw.strip() else {}
        except yaml.YAMLError as exc:
            raise FrontmatterError(f"Invalid frontmatter: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise FrontmatterError("Frontmatter must be a YAML mapping")
        return data, "\n".join(lines[index + 1 :]), index + 1

    # No closing delimiter: treat the whole file as body.
    return {}, normalized, 0


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a leading ``---`` YAML block from the Markdown body."""
    data, body, _ = _split(text)
    return data, body


def parse_document(text: str, path: str) -> Document:
    frontmatter, content, offset = _split(text)
    return Document(
        path=path,
        frontmatter=frontmatter,
        content=content,
        sections=parse_headings(content),
        line_offset=offset,
    )


def render_document(document: Document) -> str:
    """Serialise a document back to text, re-emitting frontmatter if any."""
    if not document.frontmatter:
        return document.content
    header = yaml.safe_dump(document.frontmatter, allow_unicode=True, sort_keys=False)
    return f"{_FRONTMATTER_DELIMITER}\n{header}{_FRONTMATTER_DELIMITER}\n{document.content}"


__all__ = [
    "FrontmatterError",
    "count_headings",
    "count_lines",
    "flatten_headings",
    "parse_document",
    "parse_headings",
    "render_document",
    "split_frontmatter",
]
