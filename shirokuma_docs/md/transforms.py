"""Content transforms applied before documents are combined.

Every transform leaves fenced code blocks byte-for-byte intact.
"""

from __future__ import annotations

import re
from typing import List

from ..constants import CODE_BLOCK_PLACEHOLDER, HEADING
from .code_blocks import CodeBlockTracker, is_fence, process_excluding_code_blocks

_EXCESS_BLANKS = re.compile(r"\n{3,}")
_TRAILING = re.compile(r"[ \t]+$", re.MULTILINE)
_RELATIVE_MD_LINK = re.compile(
    r"\[([^\]]*)\]\((?:\./|(?:\.\./)+)[^)\s]*?\.md(?:#[^)\s]*)?\)"
)
_BLOCK_SEPARATOR = re.compile(r"(\n[ \t]*\n(?:[ \t]*\n)*)")
_NON_PARAGRAPH = re.compile(r"^\s*(?:#{1,6}\s|[-*+]\s|\d+[.)]\s|>|\||<!--)")


def normalize_whitespace(content: str) -> str:
    """Drop trailing spaces and squeeze runs of blank lines to one."""

    def _normalize(text: str) -> str:
        return _EXCESS_BLANKS.sub("\n\n", _TRAILING.sub("", text))

    return process_excluding_code_blocks(content, _normalize)


def has_excessive_whitespace(content: str) -> bool:
    return normalize_whitespace(content) != content


def remove_internal_links(content: str) -> str:
    """Replace ``[text](./x.md)`` / ``[text](../x.md)`` links with their text."""
    return process_excluding_code_blocks(
        content, lambda text: _RELATIVE_MD_LINK.sub(r"\1", text)
    )


def count_internal_links(content: str) -> int:
    count = 0

    def _count(text: str) -> str:
        nonlocal count
        count = len(_RELATIVE_MD_LINK.findall(text))
        return text

    process_excluding_code_blocks(content, _count)
    return count


def normalize_headings(content: str, separator: str = " / ") -> str:
    """Rewrite each heading as its full path, e.g. ``### Guide / Setup / Linux``."""
    stack: List[str] = []
    tracker = CodeBlockTracker()
    output: List[str] = []
    for line in content.split("\n"):
        was_in_code = tracker.is_in_code_block()
        tracker.process_line(line)
        match = None if was_in_code or is_fence(line) else HEADING.match(line)
        if match is None:
            output.append(line)
            continue
        level = len(match.group(1))
        del stack[level - 1 :]
        stack.extend([""] * (level - 1 - len(stack)))
        stack.append(match.group(2).strip())
        hierarchy = separator.join(part for part in stack if part)
        output.append(f"{match.group(1)} {hierarchy}")
    return "\n".join(output)


def _is_paragraph(block: str) -> bool:
    stripped = block.strip()
    if not stripped or CODE_BLOCK_PLACEHOLDER in stripped:
        return False
    return not _NON_PARAGRAPH.match(stripped)


def _dedupe_blocks(text: str) -> tuple[str, int]:
    parts = _BLOCK_SEPARATOR.split(text)
    seen = set()
    removed = 0
    kept: List[str] = []
    # parts alternates block, separator, block, ...
    for index in range(0, len(parts), 2):
        block = parts[index]
        separator = parts[index - 1] if index else ""
        key = block.strip()
        if _is_paragraph(block):
            if key in seen:
                removed += 1
                if index == len(parts) - 1:
                    # Keep the final newline of the text.
                    kept.append(block[len(block.rstrip()) :])
                continue
            seen.add(key)
        kept.append(separator + block)
    return "".join(kept), removed


def remove_duplicate_paragraphs(content: str) -> str:
    """Remove repeated paragraphs, keeping the first occurrence."""
    return process_excluding_code_blocks(content, lambda text: _dedupe_blocks(text)[0])


def count_duplicate_paragraphs(content: str) -> int:
    count = 0

    def _count(text: str) -> str:
        nonlocal count
        count = _dedupe_blocks(text)[1]
        return text

    process_excluding_code_blocks(content, _count)
    return count


def transform_content(
    content: str,
    *,
    whitespace: bool = True,
    internal_links: bool = False,
    duplicates: bool = False,
    heading_paths: bool = False,
) -> str:
    """Run the selected transforms in build order."""
    if internal_links:
        content = remove_internal_links(content)
    if duplicates:
        content = remove_duplicate_paragraphs(content)
    if heading_paths:
        content = normalize_headings(content)
    if whitespace:
        content = normalize_whitespace(content)
    return content


__all__ = [
    "count_duplicate_paragraphs",
    "count_internal_links",
    "has_excessive_whitespace",
    "normalize_headings",
    "normalize_whitespace",
    "remove_duplicate_paragraphs",
    "remove_internal_links",
    "transform_content",
]
