"""Markdown analysis: document model, linter, token optimizer and dependency analyzer."""

from .analyzer import (
    AnalysisResult,
    Analyzer,
    FileMetrics,
    ReferenceCount,
    SplitPoint,
    SplitSuggestion,
    estimate_tokens,
)
from .code_blocks import (
    CodeBlockTracker,
    extract_and_replace,
    extract_code_blocks,
    is_line_in_code_block,
    process_excluding_code_blocks,
    restore_code_blocks,
)
from .files import FileCollector
from .heading_numbers import (
    NumberedHeading,
    extract_numbered_headings,
    has_numbered_headings,
    strip_heading_numbers,
)
from .linter import FileLintResult, LintReport, LintSummary, Linter, build_report
from .markdown import (
    FrontmatterError,
    count_headings,
    count_lines,
    flatten_headings,
    parse_document,
    parse_headings,
)
from .token_optimizer import TokenOptimizer, TokenReport
from .transforms import (
    count_duplicate_paragraphs,
    count_internal_links,
    has_excessive_whitespace,
    normalize_headings,
    normalize_whitespace,
    remove_duplicate_paragraphs,
    remove_internal_links,
    transform_content,
)

__all__ = [
    "AnalysisResult",
    "Analyzer",
    "CodeBlockTracker",
    "FileCollector",
    "FileLintResult",
    "FileMetrics",
    "FrontmatterError",
    "LintReport",
    "LintSummary",
    "Linter",
    "NumberedHeading",
    "ReferenceCount",
    "SplitPoint",
    "SplitSuggestion",
    "TokenOptimizer",
    "TokenReport",
    "build_report",
    "count_duplicate_paragraphs",
    "count_headings",
    "count_internal_links",
    "count_lines",
    "estimate_tokens",
    "extract_and_replace",
    "extract_code_blocks",
    "extract_numbered_headings",
    "flatten_headings",
    "has_excessive_whitespace",
    "has_numbered_headings",
    "is_line_in_code_block",
    "normalize_headings",
    "normalize_whitespace",
    "parse_document",
    "parse_headings",
    "process_excluding_code_blocks",
    "remove_duplicate_paragraphs",
    "remove_internal_links",
    "restore_code_blocks",
    "strip_heading_numbers",
    "transform_content",
]
