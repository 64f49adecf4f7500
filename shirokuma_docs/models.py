"""Core data models shared across shirokuma-docs components."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Heading:
    """ATX heading with the line range of its section."""

    level: int
    text: str
    start_line: int
    end_line: int
    children: List["Heading"] = field(default_factory=list)


@dataclass(frozen=True)
class Document:
    """A parsed Markdown file: frontmatter, body and heading tree.

    ``line_offset`` is the number of file lines taken by the frontmatter block,
    so body line ``n`` is file line ``n + line_offset``.
    """

    path: str
    frontmatter: Dict[str, Any]
    content: str
    sections: List[Heading] = field(default_factory=list)
    line_offset: int = 0


@dataclass
class CodeBlock:
    """Fenced code block position (1-based, fences included)."""

    start_line: int
    end_line: int
    language: Optional[str]
    content: str


@dataclass
class DependencyEdge:
    """A single reference from one document to another."""

    source: str
    target: str
    type: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.source, "to": self.target, "type": self.type}


@dataclass
class Issue:
    """Finding emitted by the linter."""

    rule: str
    severity: str
    message: str
    file: str
    line: Optional[int] = None


@dataclass
class TokenIssue(Issue):
    """Finding emitted by the token optimizer with an estimated saving."""

    token_savings: int = 0
    suggestion: Optional[str] = None
    before: Optional[str] = None
    after: Optional[str] = None
    context: Optional[str] = None


@dataclass
class FileError:
    """Recoverable per-file failure recorded during batch runs."""

    file: str
    message: str


__all__ = [
    "CodeBlock",
    "DependencyEdge",
    "Document",
    "FileError",
    "Heading",
    "Issue",
    "TokenIssue",
]
