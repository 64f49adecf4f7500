"""Markdown linter: per-line rules that stay quiet inside fenced code."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import ConfigError, DocsConfig
from ..constants import (
    BUILTIN_RULES,
    CONSECUTIVE_BOLD,
    FENCE,
    HEADING,
    LIST_MARKER,
    MAX_CONSECUTIVE_BLANK_LINES,
    MERMAID_STYLE,
    NAVIGATION_SECTION,
    NUMBERED_HEADING,
    SETEXT_UNDERLINE,
    SEVERITIES,
    SEVERITY_RANK,
    STRUCTURAL_BOLD,
    TRAILING_WHITESPACE,
)
from ..logging import file_logger, get_logger
from ..models import Document, FileError, Issue
from .code_blocks import CodeBlockTracker, is_fence
from .files import FileCollector
from .markdown import FrontmatterError, parse_document, render_document

logger = get_logger("linter")

_OVERVIEW_NAME = re.compile(r"overview", re.IGNORECASE)

_MESSAGES = {
    "no-trailing-spaces": "Line has trailing whitespace",
    "no-multiple-blanks": "More than 2 blank lines in a row",
    "no-numbered-headings": "Heading contains numbering; drop the number so sections can move freely",
    "no-mermaid-styling": "Mermaid style definitions waste tokens; readers of the text never see colors",
    "no-navigation-sections": "Navigation sections are redundant in combined output; use frontmatter instead",
    "no-structural-bold": "Bold used as structure wastes tokens; use plain 'Name: Value' or a table",
    "list-marker-style": "Use '-' as the list marker",
    "heading-style": "Use ATX-style headings (# Heading) instead of setext underlines",
    "file-naming": "File name does not match naming convention",
}


@dataclass
class FileLintResult:
    file: str
    issues: List[Issue] = field(default_factory=list)


@dataclass
class LintSummary:
    """Counts across every linted file."""

    files_checked: int = 0
    files_with_issues: int = 0
    total_issues: int = 0
    errors: int = 0
    warnings: int = 0
    infos: int = 0
    file_errors: int = 0


@dataclass
class LintReport:
    results: List[FileLintResult]
    summary: LintSummary
    passed: bool
    errors: List[FileError] = field(default_factory=list)

    @property
    def issues(self) -> List[Issue]:
        return [issue for result in self.results for issue in result.issues]


def _sort_issues(issues: Sequence[Issue]) -> List[Issue]:
    # Document-level issues (no line) come first, then by line; stable otherwise.
    return sorted(issues, key=lambda issue: (issue.line is not None, issue.line or 0))


def build_report(
    results: Sequence[FileLintResult],
    errors: Sequence[FileError] = (),
    *,
    fail_on: str = "warning",
) -> LintReport:
    """Summarise per-file results; the report passes when nothing reaches ``fail_on``."""
    if fail_on not in SEVERITY_RANK:
        raise ValueError(f"Unknown severity threshold: {fail_on}")

    summary = LintSummary(files_checked=len(results), file_errors=len(errors))
    threshold = SEVERITY_RANK[fail_on]
    failing = False
    for result in results:
        if result.issues:
            summary.files_with_issues += 1
        for issue in result.issues:
            summary.total_issues += 1
            if issue.severity == "error":
                summary.errors += 1
            elif issue.severity == "warning":
                summary.warnings += 1
            else:
                summary.infos += 1
            if SEVERITY_RANK[issue.severity] >= threshold:
                failing = True

    return LintReport(
        results=list(results),
        summary=summary,
        passed=not failing and not errors,
        errors=list(errors),
    )


class Linter:
    """Checks Markdown documents against the configured rule set."""

    def __init__(self, config: Optional[DocsConfig] = None) -> None:
        self.config = config or DocsConfig()
        lint = self.config.lint
        for rule in lint.builtin_rules:
            if rule not in BUILTIN_RULES:
                raise ConfigError(f"Unknown lint rule: {rule}")
        for rule, level in lint.severity.items():
            if level not in SEVERITIES:
                raise ConfigError(f"Unknown severity for {rule}: {level}")

        self._file_naming: Optional[re.Pattern[str]] = None
        if lint.file_naming is not None:
            try:
                self._file_naming = re.compile(lint.file_naming.pattern)
            except re.error as exc:
                raise ConfigError(f"Invalid lint.file_naming.pattern: {exc}") from exc

    def _enabled(self, rule: str) -> bool:
        return self.config.lint.is_enabled(rule)

    def _issue(self, rule: str, document: Document, line: Optional[int], message: str = "") -> Issue:
        default = BUILTIN_RULES.get(rule, "warning")
        return Issue(
            rule=rule,
            severity=self.config.lint.severity_for(rule, default),
            message=message or _MESSAGES[rule],
            file=document.path,
            line=line,
        )

    def lint_document(self, document: Document) -> List[Issue]:
        """Return issues for one document ordered by line."""
        issues: List[Issue] = []
        if self._file_naming is not None:
            name = PurePosixPath(document.path).name
            if not self._file_naming.search(name):
                issues.append(
                    self._issue(
                        "file-naming",
                        document,
                        None,
                        self.config.lint.file_naming.message or "",  # type: ignore[union-attr]
                    )
                )

        lines = document.content.split("\n")
        tracker = CodeBlockTracker()
        in_mermaid = False
        blank_run = 0

        for index, line in enumerate(lines):
            line_number = index + 1 + document.line_offset
            was_in_code = tracker.is_in_code_block()
            tracker.process_line(line)

            if is_fence(line):
                in_mermaid = not was_in_code and line.strip()[len(FENCE):].strip() == "mermaid"
                blank_run = 0
                continue
            if was_in_code:
                if in_mermaid and self._enabled("no-mermaid-styling") and MERMAID_STYLE.match(line):
                    issues.append(self._issue("no-mermaid-styling", document, line_number))
                blank_run = 0
                continue

            issues.extend(self._check_line(document, lines, index, blank_run))
            blank_run = blank_run + 1 if not line.strip() else 0

        if tracker.is_in_code_block():
            file_logger(logger, document.path).warning(
                "unterminated code fence; lines after it were treated as code"
            )
        return _sort_issues(issues)

    def _check_line(
        self, document: Document, lines: Sequence[str], index: int, blank_run: int
    ) -> List[Issue]:
        line = lines[index]
        line_number = index + 1 + document.line_offset
        found: List[Issue] = []

        if self._enabled("no-trailing-spaces") and TRAILING_WHITESPACE.search(line):
            found.append(self._issue("no-trailing-spaces", document, line_number))

        if (
            self._enabled("no-multiple-blanks")
            and not line.strip()
            and blank_run >= MAX_CONSECUTIVE_BLANK_LINES
        ):
            found.append(self._issue("no-multiple-blanks", document, line_number))

        if self._enabled("no-numbered-headings") and NUMBERED_HEADING.match(line):
            found.append(self._issue("no-numbered-headings", document, line_number))

        if self._enabled("no-navigation-sections") and NAVIGATION_SECTION.match(line):
            found.append(self._issue("no-navigation-sections", document, line_number))

        if self._enabled("no-structural-bold") and (
            STRUCTURAL_BOLD.match(line) or CONSECUTIVE_BOLD.search(line)
        ):
            found.append(self._issue("no-structural-bold", document, line_number))

        if self._enabled("list-marker-style"):
            match = LIST_MARKER.match(line)
            if match and match.group(2) != "-":
                found.append(self._issue("list-marker-style", document, line_number))

        if self._enabled("heading-style") and self._is_setext_heading(lines, index):
            found.append(self._issue("heading-style", document, line_number))

        return found

    @staticmethod
    def _is_setext_heading(lines: Sequence[str], index: int) -> bool:
        if index + 1 >= len(lines):
            return False
        line = lines[index]
        if not line.strip() or HEADING.match(line) or LIST_MARKER.match(line):
            return False
        return bool(SETEXT_UNDERLINE.match(lines[index + 1]))

    def lint(self, source_dir: str | Path, *, fail_on: str = "warning") -> LintReport:
        """Lint every collected file under ``source_dir``."""
        root = Path(source_dir)
        files = FileCollector(self.config.build).collect(root)
        results: List[FileLintResult] = []
        errors: List[FileError] = []

        for rel_path in files:
            document = self._load(root, rel_path, errors)
            if document is None:
                continue
            results.append(FileLintResult(file=rel_path, issues=self.lint_document(document)))

        if self.config.lint.consistent_structure.enabled:
            self._merge_structure_issues(results, self.check_structure(files))

        return build_report(results, errors, fail_on=fail_on)

    def check_structure(self, files: Sequence[str]) -> List[Issue]:
        """Directory-level checks: file count threshold and overview naming."""
        settings = self.config.lint.consistent_structure
        by_dir: Dict[str, List[str]] = {}
        for rel_path in files:
            parent = PurePosixPath(rel_path).parent.as_posix()
            by_dir.setdefault(parent, []).append(rel_path)

        issues: List[Issue] = []
        for directory, members in by_dir.items():
            if directory == ".":
                continue
            markdown = [path for path in members if path.endswith(".md")]
            if len(markdown) > settings.directory_threshold:
                issues.append(
                    Issue(
                        rule="consistent-structure-threshold",
                        severity=self.config.lint.severity_for(
                            "consistent-structure-threshold", "warning"
                        ),
                        message=(
                            f"Directory has {len(markdown)} files "
                            f"(threshold: {settings.directory_threshold}); consider subdirectories"
                        ),
                        file=directory,
                    )
                )
            for path in markdown:
                name = PurePosixPath(path).name
                is_overview = name == "index.md" or bool(_OVERVIEW_NAME.search(name))
                if is_overview and name != settings.overview_naming:
                    issues.append(
                        Issue(
                            rule="consistent-structure-naming",
                            severity=self.config.lint.severity_for(
                                "consistent-structure-naming", "warning"
                            ),
                            message=(
                                f'Overview file name should be "{settings.overview_naming}" '
                                f'(found: "{name}")'
                            ),
                            file=path,
                        )
                    )
        return issues

    @staticmethod
    def _merge_structure_issues(results: List[FileLintResult], issues: Sequence[Issue]) -> None:
        by_file = {result.file: result for result in results}
        for issue in issues:
            result = by_file.get(issue.file)
            if result is None:
                result = FileLintResult(file=issue.file)
                by_file[issue.file] = result
                results.append(result)
            result.issues = _sort_issues([*result.issues, issue])

    def fix_document(self, document: Document) -> Document:
        """Apply the trivial fixes: trailing whitespace and blank-line runs.

        Fenced code is left as written.
        """
        trim = self._enabled("no-trailing-spaces")
        collapse = self._enabled("no-multiple-blanks")
        tracker = CodeBlockTracker()
        fixed: List[str] = []
        blank_run = 0

        for line in document.content.split("\n"):
            was_in_code = tracker.is_in_code_block()
            tracker.process_line(line)
            if was_in_code or is_fence(line):
                fixed.append(line)
                blank_run = 0
                continue
            if trim:
                line = line.rstrip(" \t")
            if not line.strip():
                blank_run += 1
                if collapse and blank_run > MAX_CONSECUTIVE_BLANK_LINES:
                    continue
            else:
                blank_run = 0
            fixed.append(line)

        return replace(document, content="\n".join(fixed))

    def fix(self, source_dir: str | Path) -> Tuple[List[str], List[FileError]]:
        """Rewrite fixable files in place; return changed paths and per-file failures."""
        root = Path(source_dir)
        changed: List[str] = []
        errors: List[FileError] = []
        for rel_path in FileCollector(self.config.build).collect(root):
            document = self._load(root, rel_path, errors)
            if document is None:
                continue
            fixed = self.fix_document(document)
            if fixed.content == document.content:
                continue
            try:
                (root / rel_path).write_text(render_document(fixed), encoding="utf-8")
            except OSError as exc:
                file_logger(logger, rel_path).warning("failed to write: %s", exc)
                errors.append(FileError(file=rel_path, message=str(exc)))
                continue
            file_logger(logger, rel_path).info("fixed")
            changed.append(rel_path)
        return changed, errors

    @staticmethod
    def _load(root: Path, rel_path: str, errors: List[FileError]) -> Optional[Document]:
        try:
            text = (root / rel_path).read_text(encoding="utf-8")
            return parse_document(text, rel_path)
        except (OSError, UnicodeDecodeError, FrontmatterError) as exc:
            file_logger(logger, rel_path).warning("skipped: %s", exc)
            errors.append(FileError(file=rel_path, message=str(exc)))
            return None


__all__ = [
    "FileLintResult",
    "LintReport",
    "LintSummary",
    "Linter",
    "build_report",
]
