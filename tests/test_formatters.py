"""Lint and analysis report renderings."""

from __future__ import annotations

import json

from shirokuma_docs.md.analyzer import Analyzer
from shirokuma_docs.md.formatters import (
    format_analysis_json,
    format_analysis_markdown,
    format_analysis_text,
    format_lint_json,
    format_lint_markdown,
    format_lint_text,
)
from shirokuma_docs.md.linter import Linter
from tests._fixtures.docs_builder import DocsBuilder


def test_lint_formats(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "# A\ntext  \n"}, dedent=False)
    report = Linter().lint(docs_builder.path())

    text = format_lint_text(report)
    payload = json.loads(format_lint_json(report))
    markdown = format_lint_markdown(report)

    assert "a.md:2" in text
    assert text.endswith("Lint failed")
    assert payload["passed"] is False
    assert payload["summary"]["warnings"] == 1
    assert payload["results"][0]["issues"][0]["rule"] == "no-trailing-spaces"
    assert markdown.startswith("# Lint Report")
    assert "**Status**: failed" in markdown
    assert "| 2 | warning | no-trailing-spaces | Line has trailing whitespace |" in markdown


def test_lint_text_for_clean_tree(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "# A\n"})

    text = format_lint_text(Linter().lint(docs_builder.path()))

    assert text.splitlines() == ["1 file(s) checked: 0 error(s), 0 warning(s), 0 info", "Lint passed"]


def test_analysis_formats(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[B](b.md)\n", "b.md": "[A](a.md)\n", "c.md": "# C\n"})
    analyzer = Analyzer()
    result = analyzer.analyze(docs_builder.path(), include_metrics=True)
    graph = analyzer.generate_graph(result)

    text = format_analysis_text(result, graph)
    payload = json.loads(format_analysis_json(result, graph))
    markdown = format_analysis_markdown(result, graph)

    assert "Files analyzed: 3" in text
    assert "Cycles: 1" in text
    assert "  a.md -> b.md -> a.md" in text
    assert "Orphans: 1" in text
    assert payload["cycles"] == [["a.md", "b.md", "a.md"]]
    assert payload["orphans"] == ["c.md"]
    assert payload["graph"] == graph
    assert "file_metrics" in payload
    assert markdown.startswith("# Document Analysis")
    assert "## Circular Dependencies" in markdown
    assert "- a.md -> b.md -> a.md" in markdown
    assert "- `c.md`" in markdown
    assert "## File Metrics" in markdown
    assert "## Dependency Graph" in markdown
