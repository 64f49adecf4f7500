"""String- and comment-aware brace scanning for TypeScript-like sources.

The scanner is a single left-to-right pass over a small state machine::

    CODE -> IN_STRING(quote)     on ", ' or `
    CODE -> IN_LINE_COMMENT      on //   (back to CODE at newline)
    CODE -> IN_BLOCK_COMMENT     on /*   (back to CODE after */)

Only braces seen in ``CODE`` count. Inside a string a backslash consumes the
following character, and a newline does not terminate the literal so template
strings spanning lines stay inert. The lenient behaviour is intentional: the
callers are heuristic annotation extractors working on arbitrary snippets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

CODE = "code"
IN_STRING = "string"
IN_LINE_COMMENT = "line_comment"
IN_BLOCK_COMMENT = "block_comment"

_QUOTES = frozenset({'"', "'", "`"})


@dataclass
class ScanState:
    """Lexical state carried between chunks of the same source."""

    mode: str = CODE
    quote: str = ""


def _scan(text: str, start: int, state: ScanState) -> Iterator[Tuple[int, str]]:
    """Yield ``(index, char)`` for every brace that sits in code context."""
    i = start
    length = len(text)
    while i < length:
        char = text[i]
        if state.mode == IN_STRING:
            if char == "\\":
                i += 2
                continue
            if char == state.quote:
                state.mode = CODE
                state.quote = ""
            i += 1
            continue
        if state.mode == IN_LINE_COMMENT:
            if char == "\n":
                state.mode = CODE
            i += 1
            continue
        if state.mode == IN_BLOCK_COMMENT:
            if char == "*" and text[i + 1 : i + 2] == "/":
                state.mode = CODE
                i += 2
                continue
            i += 1
            continue

        if char in _QUOTES:
            state.mode = IN_STRING
            state.quote = char
        elif char == "/" and text[i + 1 : i + 2] == "/":
            state.mode = IN_LINE_COMMENT
            i += 2
            continue
        elif char == "/" and text[i + 1 : i + 2] == "*":
            state.mode = IN_BLOCK_COMMENT
            i += 2
            continue
        elif char in "{}":
            yield i, char
        i += 1


def count_braces(text: str) -> int:
    """Return the net number of unclosed ``{`` in code context."""
    depth = 0
    for _, char in _scan(text, 0, ScanState()):
        depth += 1 if char == "{" else -1
    return depth


def find_matching_brace(text: str, open_index: int) -> Optional[int]:
    """Return the index of the ``}`` closing ``text[open_index]``.

    Returns ``None`` when ``text[open_index]`` is not ``{`` or when the text
    ends before the brace is balanced.
    """
    if open_index < 0 or open_index >= len(text) or text[open_index] != "{":
        return None
    depth = 1
    for index, char in _scan(text, open_index + 1, ScanState()):
        depth += 1 if char == "{" else -1
        if depth == 0:
            return index
    return None


def iter_brace_depths(lines: Iterable[str]) -> Iterator[Tuple[int, int]]:
    """Yield ``(depth_before, depth_after)`` for each line of a source.

    The lexical state carries across lines, so a block comment or template
    literal opened on one line keeps its braces inert on the next.
    """
    state = ScanState()
    depth = 0
    for line in lines:
        before = depth
        # Re-attach the newline so line comments close at the boundary.
        for _, char in _scan(line + "\n", 0, state):
            depth += 1 if char == "{" else -1
        yield before, depth


__all__ = [
    "ScanState",
    "count_braces",
    "find_matching_brace",
    "iter_brace_depths",
]
