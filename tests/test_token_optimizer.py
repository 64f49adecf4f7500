"""Token optimizer rules and report rendering."""

from __future__ import annotations

import json

from shirokuma_docs.md.token_optimizer import (
    NO_ISSUES_MESSAGE,
    TokenOptimizer,
    estimate_savings,
)


def test_structural_bold_key_value() -> None:
    issues = TokenOptimizer().analyze("**Name**: Alice", "a.md")

    assert len(issues) == 1
    issue = issues[0]
    assert issue.rule == "structural-bold"
    assert issue.severity == "warning"
    assert issue.token_savings > 0
    assert issue.before == "**Name**: Alice"
    assert issue.after == "Name: Alice"
    assert issue.line == 1


def test_internal_links_only_match_relative_markdown_targets() -> None:
    line = (
        "See [guide](./guide.md) and [site](https://x.com/a.md) "
        "and [abs](/a.md) and [anchor](#a)"
    )

    issues = TokenOptimizer().analyze(line, "a.md")

    assert [(issue.rule, issue.before, issue.after) for issue in issues] == [
        ("internal-link", "[guide](./guide.md)", "guide")
    ]


def test_redundant_modifiers_match_whole_words() -> None:
    issues = TokenOptimizer().analyze("This simply works and just runs. Simply put, justice.", "a.md")

    assert sorted(issue.before for issue in issues) == ["Simply", "just", "simply"]
    assert {issue.severity for issue in issues} == {"info"}


def test_japanese_modifier() -> None:
    issues = TokenOptimizer().analyze("とても速い", "a.md")

    assert [(issue.rule, issue.before) for issue in issues] == [("redundant-modifier", "とても")]


def test_verbose_phrase() -> None:
    issues = TokenOptimizer().analyze("We do this in order to win", "a.md")

    assert [(issue.rule, issue.after) for issue in issues] == [("verbose-phrase", "to")]


def test_code_blocks_are_skipped() -> None:
    assert TokenOptimizer().analyze("```\n**Name**: simply\n```", "a.md") == []


def test_estimate_savings_has_floor_of_one() -> None:
    assert estimate_savings("") == 1
    assert estimate_savings("abcde") == 2


def test_empty_report_has_sentinel_recommendation() -> None:
    optimizer = TokenOptimizer()

    report = optimizer.generate_report([])

    assert report.total_issues == 0
    assert report.total_token_savings == 0
    assert report.recommendations == [NO_ISSUES_MESSAGE]
    assert set(report.issues_by_severity) == {"error", "warning", "info"}
    assert NO_ISSUES_MESSAGE in optimizer.format_report_markdown(report)


def test_report_aggregates_issues() -> None:
    optimizer = TokenOptimizer()
    issues = optimizer.analyze("**Name**: Alice\nJust see [guide](./guide.md).", "a.md")

    report = optimizer.generate_report(issues)

    assert report.total_issues == 3
    assert report.total_token_savings == sum(issue.token_savings for issue in issues)
    assert set(report.issues_by_rule) == {"structural-bold", "internal-link", "redundant-modifier"}
    assert len(report.issues_by_severity["warning"]) == 2
    assert report.recommendations[0] == (
        f"Found 3 optimization opportunities ({report.total_token_savings} tokens)"
    )
    assert report.recommendations[1] == "Fix 2 warnings first (highest impact)"


def test_markdown_and_json_formats() -> None:
    optimizer = TokenOptimizer()
    report = optimizer.generate_report(optimizer.analyze("**Name**: Alice", "docs/a.md"))

    markdown = optimizer.format_report_markdown(report)
    payload = json.loads(optimizer.format_report_json(report))

    assert markdown.startswith("# Token Optimization Report")
    assert "### docs/a.md" in markdown
    assert "- After: `Name: Alice`" in markdown
    assert payload["total_issues"] == 1
    assert payload["issues"][0]["rule"] == "structural-bold"


def test_issues_are_ordered_by_line() -> None:
    issues = TokenOptimizer().analyze("Just go.\n**Name**: John", "a.md")

    assert [(issue.line, issue.rule) for issue in issues] == [
        (1, "redundant-modifier"),
        (2, "structural-bold"),
    ]


def test_structural_bold_matches_linter_pattern() -> None:
    issues = TokenOptimizer().analyze("- **Name**: John Doe\n**Age** : 30\n", "a.md")

    assert [(issue.line, issue.before, issue.after) for issue in issues] == [
        (1, "- **Name**: John Doe", "- Name: John Doe"),
        (2, "**Age** : 30", "Age: 30"),
    ]
