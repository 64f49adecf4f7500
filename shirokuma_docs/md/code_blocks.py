"""Fenced code block detection shared by the linter, parser and transforms."""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Sequence, Tuple

from ..constants import CODE_BLOCK_PLACEHOLDER, FENCE
from ..models import CodeBlock

_FENCED_REGION = re.compile(r"```[\s\S]*?```")


def is_fence(line: str) -> bool:
    return line.strip().startswith(FENCE)


class CodeBlockTracker:
    """Line-by-line fence tracker.

    An unterminated fence is never closed, so everything after a stray
    fence reports as code until :meth:`reset` is called.
    """

    def __init__(self) -> None:
        self._in_code_block = False

    def process_line(self, line: str) -> None:
        if is_fence(line):
            self._in_code_block = not self._in_code_block

    def is_in_code_block(self) -> bool:
        return self._in_code_block

    def reset(self) -> None:
        self._in_code_block = False


def extract_code_blocks(content: str) -> List[CodeBlock]:
    """Return every closed fenced block with 1-based line positions."""
    blocks: List[CodeBlock] = []
    start_line = 0
    language: Optional[str] = None
    body: List[str] = []
    in_block = False

    for index, line in enumerate(content.split("\n"), start=1):
        if is_fence(line):
            if not in_block:
                start_line = index
                language = line.strip()[len(FENCE):].strip() or None
                body = []
                in_block = True
            else:
                blocks.append(
                    CodeBlock(
                        start_line=start_line,
                        end_line=index,
                        language=language,
                        content="\n".join(body),
                    )
                )
                in_block = False
        elif in_block:
            body.append(line)

    return blocks


def is_line_in_code_block(line_number: int, blocks: Sequence[CodeBlock]) -> bool:
    return any(block.start_line <= line_number <= block.end_line for block in blocks)


def extract_and_replace(
    content: str, placeholder: str = CODE_BLOCK_PLACEHOLDER
) -> Tuple[str, List[str], str]:
    """Swap fenced regions for numbered placeholders.

    Returns the rewritten content, the extracted blocks in order and the
    placeholder token so :func:`restore_code_blocks` can undo the swap.
    """
    blocks: List[str] = []

    def _replace(match: re.Match[str]) -> str:
        blocks.append(match.group(0))
        return f"{placeholder}{len(blocks) - 1}{placeholder}"

    return _FENCED_REGION.sub(_replace, content), blocks, placeholder


def restore_code_blocks(
    content: str, blocks: Sequence[str], placeholder: str = CODE_BLOCK_PLACEHOLDER
) -> str:
    restored = content
    for index, block in enumerate(blocks):
        restored = restored.replace(f"{placeholder}{index}{placeholder}", block, 1)
    return restored


def process_excluding_code_blocks(content: str, transform: Callable[[str], str]) -> str:
    """Apply ``transform`` to everything outside fenced code blocks."""
    safe, blocks, placeholder = extract_and_replace(content)
    return restore_code_blocks(transform(safe), blocks, placeholder)


__all__ = [
    "CodeBlockTracker",
    "extract_and_replace",
    "extract_code_blocks",
    "is_fence",
    "is_line_in_code_block",
    "process_excluding_code_blocks",
    "restore_code_blocks",
]
