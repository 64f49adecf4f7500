"""Markdown lint rules and batch runs."""

from __future__ import annotations

from typing import List, Tuple

import pytest

from shirokuma_docs.config import (
    ConfigError,
    DocsConfig,
    FileNamingConfig,
    LintConfig,
    StructureRuleConfig,
)
from shirokuma_docs.md.linter import FileLintResult, Linter, build_report
from shirokuma_docs.md.markdown import parse_document
from shirokuma_docs.models import Issue
from tests._fixtures.docs_builder import DocsBuilder


def _lint(text: str, config: DocsConfig | None = None, path: str = "doc.md") -> List[Issue]:
    return Linter(config).lint_document(parse_document(text, path))


def _rules(issues: List[Issue]) -> List[Tuple[str, int | None]]:
    return [(issue.rule, issue.line) for issue in issues]


def test_clean_document_has_no_issues() -> None:
    assert _lint("# Title\n\nSome text.\n\n- item\n") == []


def test_trailing_spaces_are_flagged() -> None:
    issues = _lint("# T\ntext  \n")

    assert _rules(issues) == [("no-trailing-spaces", 2)]
    assert issues[0].severity == "warning"
    assert issues[0].file == "doc.md"


def test_line_numbers_count_frontmatter_lines() -> None:
    assert _rules(_lint("---\ntitle: A\n---\n# A\ntext  \n")) == [("no-trailing-spaces", 5)]


def test_third_blank_line_is_flagged() -> None:
    assert _rules(_lint("a\n\n\n\nb")) == [("no-multiple-blanks", 4)]


def test_numbered_heading_is_flagged() -> None:
    assert _rules(_lint("## 1. Intro\n")) == [("no-numbered-headings", 1)]


def test_code_blocks_are_skipped() -> None:
    assert _lint("```\n## 1. x  \n* item\n```\n") == []


def test_mermaid_style_inside_mermaid_block() -> None:
    issues = _lint("```mermaid\ngraph TD\n  style A fill:#f9f\n```\n")

    assert _rules(issues) == [("no-mermaid-styling", 3)]


def test_style_lines_in_other_code_blocks_are_ignored() -> None:
    assert _lint("```python\nstyle x\n```\n") == []


@pytest.mark.parametrize("heading", ["## Related Documents", "## 関連ドキュメント", "### See also"])
def test_navigation_sections(heading: str) -> None:
    assert _rules(_lint(heading + "\n")) == [("no-navigation-sections", 1)]


def test_severity_override() -> None:
    config = DocsConfig(lint=LintConfig(severity={"no-navigation-sections": "info"}))

    issues = _lint("## Next Steps\n", config)

    assert [issue.severity for issue in issues] == ["info"]


def test_structural_bold_is_reported_once_per_line() -> None:
    assert _rules(_lint("**Field**: **Value**")) == [("no-structural-bold", 1)]
    assert _rules(_lint("- **Name**: value")) == [("no-structural-bold", 1)]


def test_list_marker_style() -> None:
    issues = _lint("* a\n+ b\n- c")

    assert _rules(issues) == [("list-marker-style", 1), ("list-marker-style", 2)]
    assert {issue.severity for issue in issues} == {"info"}


def test_setext_heading_style() -> None:
    assert _rules(_lint("Title\n=====\n")) == [("heading-style", 1)]


def test_disabled_rule_is_skipped() -> None:
    config = DocsConfig(lint=LintConfig(builtin_rules={"no-trailing-spaces": False}))

    assert _lint("text  \n", config) == []


def test_unknown_rule_is_rejected() -> None:
    with pytest.raises(ConfigError):
        Linter(DocsConfig(lint=LintConfig(builtin_rules={"bogus": True})))


def test_invalid_file_naming_pattern_is_rejected() -> None:
    config = DocsConfig(lint=LintConfig(file_naming=FileNamingConfig(pattern="(")))

    with pytest.raises(ConfigError):
        Linter(config)


def test_unterminated_fence_suppresses_rest_of_document() -> None:
    assert _lint("```\n## 1. x\n") == []


def test_issues_are_ordered_by_line() -> None:
    issues = _lint("* a  \n## 1. Heading\ntext  ")

    assert [issue.line for issue in issues] == sorted(issue.line for issue in issues)


def test_file_naming_issue_comes_first() -> None:
    config = DocsConfig(
        lint=LintConfig(
            file_naming=FileNamingConfig(pattern=r"^[a-z0-9-]+\.md$", message="Use kebab-case")
        )
    )

    issues = _lint("text  \n", config, path="docs/Bad_Name.md")

    assert _rules(issues) == [("file-naming", None), ("no-trailing-spaces", 1)]
    assert issues[0].message == "Use kebab-case"


def test_build_report_thresholds() -> None:
    info = Issue(rule="heading-style", severity="info", message="m", file="a.md", line=1)
    warning = Issue(rule="no-trailing-spaces", severity="warning", message="m", file="a.md", line=2)

    assert build_report([FileLintResult("a.md", [info])]).passed is True
    assert build_report([FileLintResult("a.md", [info, warning])]).passed is False
    assert build_report([FileLintResult("a.md", [warning])], fail_on="error").passed is True

    with pytest.raises(ValueError):
        build_report([], fail_on="fatal")


def test_lint_directory(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "# A\n", "sub/b.md": "# B  \n"}, dedent=False)

    report = Linter().lint(docs_builder.path())

    assert [result.file for result in report.results] == ["a.md", "sub/b.md"]
    assert report.summary.files_checked == 2
    assert report.summary.files_with_issues == 1
    assert report.summary.warnings == 1
    assert report.passed is False


def test_lint_records_unreadable_frontmatter(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"bad.md": "---\nkey: [oops\n---\n# x\n", "good.md": "# Good\n"})

    report = Linter().lint(docs_builder.path())

    assert [error.file for error in report.errors] == ["bad.md"]
    assert report.summary.files_checked == 1
    assert report.passed is False


def test_lint_missing_directory(docs_builder: DocsBuilder) -> None:
    with pytest.raises(FileNotFoundError):
        Linter().lint(docs_builder.path() / "missing")


def test_structure_checks(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "README.md": "# Root\n",
            "guide/a.md": "# A\n",
            "guide/b.md": "# B\n",
            "guide/index.md": "# Index\n",
        }
    )
    config = DocsConfig(
        lint=LintConfig(
            consistent_structure=StructureRuleConfig(enabled=True, directory_threshold=2)
        )
    )

    report = Linter(config).lint(docs_builder.path())

    by_rule = {issue.rule: issue for issue in report.issues}
    assert by_rule["consistent-structure-threshold"].file == "guide"
    assert by_rule["consistent-structure-naming"].file == "guide/index.md"
    assert "overview.md" in by_rule["consistent-structure-naming"].message


def test_fix_rewrites_trailing_spaces_and_blank_runs(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": "---\ntitle: A\n---\n# A  \n\n\n\n\ntext\n",
            "clean.md": "# Clean\n",
        },
        dedent=False,
    )
    linter = Linter()

    changed, errors = linter.fix(docs_builder.path())

    assert changed == ["a.md"]
    assert errors == []
    assert docs_builder.read("a.md") == "---\ntitle: A\n---\n# A\n\n\ntext\n"
    assert linter.lint(docs_builder.path()).passed is True


def test_fix_document_keeps_code_blocks() -> None:
    document = parse_document("```\ncode  \n```\ntext  \n", "a.md")

    fixed = Linter().fix_document(document)

    assert fixed.content == "```\ncode  \n```\ntext\n"
