"""Text, JSON and Markdown renderings of lint and analysis reports."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader

from .analyzer import AnalysisResult
from .linter import LintReport

_TEMPLATES_DIR = Path(__file__).with_name("templates")


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def lint_report_to_dict(report: LintReport) -> Dict[str, object]:
    return {
        "passed": report.passed,
        "summary": asdict(report.summary),
        "results": [
            {"file": result.file, "issues": [asdict(issue) for issue in result.issues]}
            for result in report.results
        ],
        "errors": [asdict(error) for error in report.errors],
    }


def format_lint_text(report: LintReport) -> str:
    lines: List[str] = []
    for result in report.results:
        for issue in result.issues:
            location = f"{issue.file}:{issue.line}" if issue.line is not None else issue.file
            lines.append(f"{location}  {issue.severity:<7}  {issue.message}  ({issue.rule})")
    for error in report.errors:
        lines.append(f"{error.file}  unreadable  {error.message}")

    summary = report.summary
    if lines:
        lines.append("")
    lines.append(
        f"{summary.files_checked} file(s) checked: {summary.errors} error(s), "
        f"{summary.warnings} warning(s), {summary.infos} info"
    )
    lines.append("Lint passed" if report.passed else "Lint failed")
    return "\n".join(lines)


def format_lint_json(report: LintReport) -> str:
    return json.dumps(lint_report_to_dict(report), indent=2, ensure_ascii=False)


def format_lint_markdown(report: LintReport) -> str:
    template = _environment().get_template("lint_report.md.j2")
    return template.render(report=report)


def format_analysis_text(result: AnalysisResult, graph: Optional[str] = None) -> str:
    lines = [
        f"Files analyzed: {result.total_files}",
        f"Dependencies: {len(result.dependencies)}",
        f"Cycles: {len(result.cycles)}",
    ]
    lines.extend(f"  {' -> '.join(cycle)}" for cycle in result.cycles)
    lines.append(f"Orphans: {len(result.orphans)}")
    lines.extend(f"  {orphan}" for orphan in result.orphans)
    if result.most_referenced:
        lines.append("Most referenced:")
        lines.extend(f"  {entry.file} ({entry.count})" for entry in result.most_referenced)
    if result.total_tokens is not None:
        lines.append(
            f"Tokens: {result.total_tokens} total, "
            f"{result.average_tokens_per_file:.1f} per file"
        )
    for suggestion in result.split_suggestions or []:
        lines.append(f"Split {suggestion.file}: {suggestion.reason}")
        lines.extend(
            f"  {split.heading} (lines {split.start_line}-{split.end_line})"
            for split in suggestion.suggested_splits
        )
    for error in result.errors:
        lines.append(f"Unreadable: {error.file}: {error.message}")
    if graph:
        lines.extend(["", graph])
    return "\n".join(lines)


def format_analysis_json(result: AnalysisResult, graph: Optional[str] = None) -> str:
    payload = result.to_dict()
    if graph:
        payload["graph"] = graph
    return json.dumps(payload, indent=2, ensure_ascii=False)


def format_analysis_markdown(result: AnalysisResult, graph: Optional[str] = None) -> str:
    template = _environment().get_template("analysis_report.md.j2")
    return template.render(result=result, graph=graph)


__all__ = [
    "format_analysis_json",
    "format_analysis_markdown",
    "format_analysis_text",
    "format_lint_json",
    "format_lint_markdown",
    "format_lint_text",
    "lint_report_to_dict",
]
