"""Token optimizer.

Detects token-wasteful Markdown patterns and estimates how many tokens each
finding would save. Content is never modified; overlapping findings from
different rules are reported as-is.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, List, Tuple

from ..constants import (
    CHARS_PER_TOKEN,
    INTERNAL_LINK,
    SEVERITIES,
    STRUCTURAL_BOLD,
    STRUCTURAL_BOLD_PARTS,
)
from ..models import TokenIssue
from .code_blocks import CodeBlockTracker, is_fence

NO_ISSUES_MESSAGE = "✓ No token optimization issues found!"

_CONTEXT_WIDTH = 80

REDUNDANT_MODIFIERS: Tuple[str, ...] = (
    "automatically",
    "simply",
    "easily",
    "just",
    "multiple",
    "非常に",
    "とても",
)

# phrase -> shorter replacement
VERBOSE_PHRASES: Tuple[Tuple[str, str], ...] = (
    ("詳細なログを出力", "詳細ログ出力"),
    ("Combine multiple Markdown files into", "Combine files into"),
    ("Automatically extract", "Auto-extract"),
    ("in order to", "to"),
    ("due to the fact that", "because"),
    ("at this point in time", "now"),
)


def estimate_savings(removed: str) -> int:
    """Tokens saved by removing ``removed``: ``ceil(len / 4)``, at least 1."""
    return max(1, math.ceil(len(removed) / CHARS_PER_TOKEN))


def _word_pattern(word: str) -> re.Pattern[str]:
    if word.isascii():
        return re.compile(rf"(?<!\w){re.escape(word)}(?!\w)", re.IGNORECASE)
    return re.compile(re.escape(word))


_MODIFIER_PATTERNS = [(word, _word_pattern(word)) for word in REDUNDANT_MODIFIERS]
_PHRASE_PATTERNS = [
    (before, after, re.compile(re.escape(before), re.IGNORECASE))
    for before, after in VERBOSE_PHRASES
]


@dataclass
class TokenReport:
    issues: List[TokenIssue]
    total_issues: int
    total_token_savings: int
    issues_by_severity: Dict[str, List[TokenIssue]] = field(default_factory=dict)
    issues_by_rule: Dict[str, List[TokenIssue]] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "issues": [asdict(issue) for issue in self.issues],
            "total_issues": self.total_issues,
            "total_token_savings": self.total_token_savings,
            "issues_by_severity": {
                key: [asdict(issue) for issue in value]
                for key, value in self.issues_by_severity.items()
            },
            "issues_by_rule": {
                key: [asdict(issue) for issue in value]
                for key, value in self.issues_by_rule.items()
            },
            "recommendations": list(self.recommendations),
        }


LineRule = Callable[[str, str, int], List[TokenIssue]]


def _structural_bold(line: str, file_path: str, line_number: int) -> List[TokenIssue]:
    if not STRUCTURAL_BOLD.match(line):
        return []
    match = STRUCTURAL_BOLD_PARTS.match(line)
    if match is None:
        return []
    marker, key, value = match.group(1), match.group(2).strip(), match.group(3).strip()
    removed = f"**{key}**:"
    after = f"{marker} {key}: {value}".strip()
    return [
        TokenIssue(
            rule="structural-bold",
            severity="warning",
            message="Structural bold in key-value pair wastes tokens; a table or plain text is cheaper",
            file=file_path,
            line=line_number,
            token_savings=estimate_savings(removed),
            suggestion=f"Remove bold: {after}",
            before=line.strip(),
            after=after,
            context=line[:_CONTEXT_WIDTH],
        )
    ]


def _internal_links(line: str, file_path: str, line_number: int) -> List[TokenIssue]:
    issues: List[TokenIssue] = []
    for match in INTERNAL_LINK.finditer(line):
        full, text = match.group(0), match.group(1)
        issues.append(
            TokenIssue(
                rule="internal-link",
                severity="warning",
                message="Internal link markup is redundant once documents are combined",
                file=file_path,
                line=line_number,
                token_savings=estimate_savings(full[: len(full) - len(text)]),
                suggestion=f'Keep the text only: "{text}"',
                before=full,
                after=text,
                context=line[:_CONTEXT_WIDTH],
            )
        )
    return issues


def _redundant_modifiers(line: str, file_path: str, line_number: int) -> List[TokenIssue]:
    issues: List[TokenIssue] = []
    for word, pattern in _MODIFIER_PATTERNS:
        for match in pattern.finditer(line):
            found = match.group(0)
            issues.append(
                TokenIssue(
                    rule="redundant-modifier",
                    severity="info",
                    message=f'Redundant modifier "{found}" can be removed',
                    file=file_path,
                    line=line_number,
                    token_savings=estimate_savings(f"{word} "),
                    suggestion=f'Remove "{found}"',
                    before=found,
                    after="",
                    context=line[:_CONTEXT_WIDTH],
                )
            )
    return issues


def _verbose_phrases(line: str, file_path: str, line_number: int) -> List[TokenIssue]:
    issues: List[TokenIssue] = []
    for before, after, pattern in _PHRASE_PATTERNS:
        for match in pattern.finditer(line):
            savings = estimate_savings(before[: len(before) - len(after)])
            issues.append(
                TokenIssue(
                    rule="verbose-phrase",
                    severity="info",
                    message=f"Verbose phrase can be simplified (saves ~{savings} tokens)",
                    file=file_path,
                    line=line_number,
                    token_savings=savings,
                    suggestion=f'Replace "{match.group(0)}" with "{after}"',
                    before=match.group(0),
                    after=after,
                    context=line[:_CONTEXT_WIDTH],
                )
            )
    return issues


class TokenOptimizer:
    """Runs the token rules over Markdown content outside fenced code.

    Issues come back in line order.
    """

    def __init__(self) -> None:
        self.rules: List[Tuple[str, LineRule]] = [
            ("structural-bold", _structural_bold),
            ("verbose-phrase", _verbose_phrases),
            ("internal-link", _internal_links),
            ("redundant-modifier", _redundant_modifiers),
        ]

    def analyze(self, content: str, file_path: str) -> List[TokenIssue]:
        lines = content.split("\n")
        issues: List[TokenIssue] = []
        for _, rule in self.rules:
            tracker = CodeBlockTracker()
            for line_number, line in enumerate(lines, start=1):
                was_in_code = tracker.is_in_code_block()
                tracker.process_line(line)
                if was_in_code or is_fence(line):
                    continue
                issues.extend(rule(line, file_path, line_number))
        # Stable: issues on the same line keep rule order.
        return sorted(issues, key=lambda issue: issue.line or 0)

    def generate_report(self, issues: List[TokenIssue]) -> TokenReport:
        by_severity: Dict[str, List[TokenIssue]] = {severity: [] for severity in SEVERITIES}
        by_rule: Dict[str, List[TokenIssue]] = {}
        total_savings = 0
        for issue in issues:
            by_severity.setdefault(issue.severity, []).append(issue)
            by_rule.setdefault(issue.rule, []).append(issue)
            total_savings += issue.token_savings

        return TokenReport(
            issues=list(issues),
            total_issues=len(issues),
            total_token_savings=total_savings,
            issues_by_severity=by_severity,
            issues_by_rule=by_rule,
            recommendations=self._recommendations(issues, total_savings),
        )

    @staticmethod
    def _recommendations(issues: List[TokenIssue], total_savings: int) -> List[str]:
        if not issues:
            return [NO_ISSUES_MESSAGE]
        recommendations = [
            f"Found {len(issues)} optimization opportunities ({total_savings} tokens)"
        ]
        warnings = [issue for issue in issues if issue.severity == "warning"]
        if warnings:
            recommendations.append(f"Fix {len(warnings)} warnings first (highest impact)")
        recommendations.append("Review info-level wording changes in context before applying them")
        recommendations.append("Re-run `shirokuma-md optimize` after editing to confirm the savings")
        return recommendations

    def format_report_markdown(self, report: TokenReport) -> str:
        lines = [
            "# Token Optimization Report",
            "",
            f"**Issues Found**: {report.total_issues}",
            f"**Potential Token Savings**: {report.total_token_savings} tokens",
            "",
        ]
        if report.total_issues == 0:
            lines.append(NO_ISSUES_MESSAGE)
            return "\n".join(lines)

        by_file: Dict[str, List[TokenIssue]] = {}
        for issue in report.issues:
            by_file.setdefault(issue.file, []).append(issue)

        lines.extend(["## Issues by File", ""])
        for file_path, file_issues in by_file.items():
            lines.extend([f"### {file_path}", ""])
            for issue in file_issues:
                lines.append(f"**Line {issue.line}** ({issue.severity}): {issue.message}")
                if issue.before and issue.after:
                    lines.append(f"- Before: `{issue.before}`")
                    lines.append(f"- After: `{issue.after}`")
                lines.append(f"- Token savings: ~{issue.token_savings}")
                lines.append("")

        lines.extend(["## Summary by Severity", ""])
        for severity in SEVERITIES:
            bucket = report.issues_by_severity.get(severity, [])
            savings = sum(issue.token_savings for issue in bucket)
            lines.append(f"- **{severity}**: {len(bucket)} issues ({savings} tokens)")

        lines.extend(["", "## Summary by Rule", ""])
        for rule, bucket in report.issues_by_rule.items():
            savings = sum(issue.token_savings for issue in bucket)
            lines.append(f"- **{rule}**: {len(bucket)} issues ({savings} tokens)")

        lines.extend(["", "## Recommendations", ""])
        lines.extend(f"- {recommendation}" for recommendation in report.recommendations)
        return "\n".join(lines)

    def format_report_json(self, report: TokenReport) -> str:
        return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


__all__ = [
    "NO_ISSUES_MESSAGE",
    "REDUNDANT_MODIFIERS",
    "TokenOptimizer",
    "TokenReport",
    "VERBOSE_PHRASES",
    "estimate_savings",
]
