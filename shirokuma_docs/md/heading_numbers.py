"""Heading number detection and removal.

``## 1. Introduction`` becomes ``## Introduction`` and ``### 2.1. Setup``
becomes ``### Setup``; fenced code is never touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ..constants import NUMBERED_HEADING, NUMBERED_HEADING_PREFIX
from .code_blocks import CodeBlockTracker, is_fence, process_excluding_code_blocks


@dataclass
class NumberedHeading:
    line_number: int
    level: int
    number: str
    title: str
    raw: str


def strip_heading_numbers(markdown: str) -> str:
    return process_excluding_code_blocks(
        markdown, lambda text: NUMBERED_HEADING_PREFIX.sub(r"\1\2", text)
    )


def extract_numbered_headings(markdown: str) -> List[NumberedHeading]:
    headings: List[NumberedHeading] = []
    tracker = CodeBlockTracker()
    for line_number, line in enumerate(markdown.split("\n"), start=1):
        tracker.process_line(line)
        if is_fence(line) or tracker.is_in_code_block():
            continue
        match = NUMBERED_HEADING.match(line)
        if match:
            headings.append(
                NumberedHeading(
                    line_number=line_number,
                    level=len(match.group(1)),
                    number=match.group(2),
                    title=match.group(3),
                    raw=line,
                )
            )
    return headings


def has_numbered_headings(markdown: str) -> bool:
    return bool(extract_numbered_headings(markdown))


__all__ = [
    "NumberedHeading",
    "extract_numbered_headings",
    "has_numbered_headings",
    "strip_heading_numbers",
]
