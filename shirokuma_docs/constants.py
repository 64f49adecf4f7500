"""Shared constants for Markdown analysis."""

from __future__ import annotations

import re
from typing import Dict, Tuple

SEVERITIES: Tuple[str, ...] = ("error", "warning", "info")
SEVERITY_RANK: Dict[str, int] = {"info": 0, "warning": 1, "error": 2}

CHARS_PER_TOKEN = 4

MAX_CONSECUTIVE_BLANK_LINES = 2

# Split suggestion defaults
DEFAULT_MAX_LINES = 200
DEFAULT_MAX_TOKENS = 2000
DEFAULT_MIN_SPLIT_LINES = 50
MOST_REFERENCED_LIMIT = 10

DEFAULT_INCLUDE = ("**/*.md",)
DEFAULT_EXCLUDE = ("node_modules/**", "**/dist/**")

CONFIG_FILENAMES = (
    "shirokuma-md.config.yaml",
    "shirokuma-md.config.yml",
    ".shirokuma-md.yaml",
    ".shirokuma-md.yml",
)

DEPENDENCY_TYPES = ("frontmatter", "wiki-link", "markdown-link")

# Rule name -> default severity. Order is the evaluation order.
BUILTIN_RULES: Dict[str, str] = {
    "no-trailing-spaces": "warning",
    "no-multiple-blanks": "warning",
    "no-numbered-headings": "warning",
    "no-mermaid-styling": "warning",
    "no-navigation-sections": "warning",
    "no-structural-bold": "warning",
    "list-marker-style": "info",
    "heading-style": "info",
}

FENCE = "```"
CODE_BLOCK_PLACEHOLDER = "___CODE_BLOCK_PLACEHOLDER___"

HEADING = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
NUMBERED_HEADING = re.compile(r"^(#{1,6})\s+(\d+(?:\.\d+)*)\.\s+(.+)$")
NUMBERED_HEADING_PREFIX = re.compile(
    r"^(#{1,6}[ \t]+)(?:\d+(?:\.\d+)*\.[ \t]+)+(.+)$", re.MULTILINE
)
STRUCTURAL_BOLD = re.compile(r"^[-*]?\s*\*\*[^*]+\*\*\s*:")
CONSECUTIVE_BOLD = re.compile(r"\*\*[^*]+\*\*:\s*\*\*[^*]+\*\*")
STRUCTURAL_BOLD_PARTS = re.compile(r"^([-*]?)\s*\*\*([^*]+)\*\*\s*:\s*(.*)$")
SETEXT_UNDERLINE = re.compile(r"^(?:=+|-+)\s*$")
NAVIGATION_SECTION = re.compile(
    r"^#{2,6}\s*(関連ドキュメント|Related Documents?|次のステップ|Next Steps?|See Also)",
    re.IGNORECASE,
)
MERMAID_STYLE = re.compile(r"^\s*style\s+\w+")
LIST_MARKER = re.compile(r"^(\s*)([-*+])\s")
TRAILING_WHITESPACE = re.compile(r"[ \t]+$")
WIKI_LINK = re.compile(r"\[\[([^\]]+)\]\]")
MARKDOWN_LINK_MD = re.compile(r"\[([^\]]+)\]\(([^)]+\.md)\)")
INTERNAL_LINK = re.compile(
    r"\[([^\]]+)\]\((?![a-zA-Z][a-zA-Z0-9+.-]*:|/|#)([^)\s]+\.md)(#[^)\s]*)?\)"
)
