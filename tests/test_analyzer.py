"""Dependency analysis: edges, cycles, orphans, metrics and split suggestions."""

from __future__ import annotations

import pytest

from shirokuma_docs.config import AnalyzeConfig, DocsConfig
from shirokuma_docs.md.analyzer import Analyzer, estimate_tokens
from shirokuma_docs.models import DependencyEdge
from tests._fixtures.docs_builder import DocsBuilder


def test_cycle_is_reported_as_closed_path(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": "[B](b.md)\n",
            "b.md": "[C](c.md)\n",
            "c.md": "[A](a.md)\n",
        }
    )

    result = Analyzer().analyze(docs_builder.path())

    assert result.cycles == [["a.md", "b.md", "c.md", "a.md"]]
    assert result.orphans == []


def _edges(*pairs: tuple[str, str]) -> list[DependencyEdge]:
    return [DependencyEdge(source=a, target=b, type="markdown-link") for a, b in pairs]


def test_disjoint_cycles_are_each_reported() -> None:
    edges = _edges(("a.md", "b.md"), ("b.md", "a.md"), ("c.md", "d.md"), ("d.md", "c.md"))

    assert Analyzer().detect_cycles(edges) == [
        ["a.md", "b.md", "a.md"],
        ["c.md", "d.md", "c.md"],
    ]


def test_long_chain_does_not_exhaust_the_stack() -> None:
    names = [f"n{index}.md" for index in range(20_000)]
    chain = _edges(*zip(names, names[1:]))

    assert Analyzer().detect_cycles(chain) == []

    cycles = Analyzer().detect_cycles(chain + _edges((names[-1], names[0])))
    assert len(cycles) == 1
    assert len(cycles[0]) == 20_001
    assert cycles[0][0] == cycles[0][-1] == "n0.md"


def test_dag_has_no_cycles_and_reports_orphans(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[B](b.md)\n", "b.md": "[C](c.md)\n", "c.md": "# C\n"})

    result = Analyzer().analyze(docs_builder.path())

    assert result.cycles == []
    assert result.orphans == ["a.md"]
    assert [edge.to_dict() for edge in result.dependencies] == [
        {"from": "a.md", "to": "b.md", "type": "markdown-link"},
        {"from": "b.md", "to": "c.md", "type": "markdown-link"},
    ]


def test_orphans_match_by_basename(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[X](x.md)\n", "docs/x.md": "[A](a.md)\n"})

    result = Analyzer().analyze(docs_builder.path())

    assert result.orphans == []


def test_frontmatter_and_wiki_link_edges(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "a.md": """
            ---
            dependencies:
              - c.md
            ---
            See [[b]].
            """,
            "b.md": "# B\n",
            "c.md": "# C\n",
        }
    )

    result = Analyzer().analyze(docs_builder.path())

    assert [(edge.target, edge.type) for edge in result.dependencies] == [
        ("c.md", "frontmatter"),
        ("b", "wiki-link"),
    ]
    # Wiki targets are compared verbatim, so "b" does not cover b.md.
    assert result.orphans == ["a.md", "b.md"]


def test_self_references_and_repeats(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[me](a.md) [b](b.md) [again](b.md)\n", "b.md": "# B\n"})

    result = Analyzer().analyze(docs_builder.path())

    assert [edge.target for edge in result.dependencies] == ["b.md", "b.md"]
    assert [(entry.file, entry.count) for entry in result.most_referenced] == [("b.md", 2)]


def test_detection_can_be_disabled(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[[b]] [c](c.md)\n"})
    config = DocsConfig(
        analyze=AnalyzeConfig(
            dependency_detection={"frontmatter": True, "wiki-link": False, "markdown-link": True}
        )
    )

    result = Analyzer(config).analyze(docs_builder.path())

    assert [edge.type for edge in result.dependencies] == ["markdown-link"]


def test_most_referenced_is_sorted_and_limited() -> None:
    edges = [
        DependencyEdge(source=f"s{i}.md", target=f"t{n}.md", type="markdown-link")
        for n in range(12)
        for i in range(n + 1)
    ]

    ranked = Analyzer().calculate_most_referenced(edges)

    assert len(ranked) == 10
    assert ranked[0].file == "t11.md"
    assert [entry.count for entry in ranked] == sorted(
        (entry.count for entry in ranked), reverse=True
    )


def test_metrics_use_character_estimate(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "# A\n\nHello world\n", "b.md": "# B\n## Sub\n"})

    result = Analyzer().analyze(docs_builder.path(), include_metrics=True)

    assert result.file_metrics is not None
    by_file = {metrics.file: metrics for metrics in result.file_metrics}
    assert by_file["a.md"].tokens == estimate_tokens("# A\n\nHello world\n")
    assert by_file["a.md"].lines == 4
    assert by_file["b.md"].top_level_sections == 1
    assert result.total_tokens == sum(metrics.tokens for metrics in result.file_metrics)
    assert result.average_tokens_per_file == pytest.approx(result.total_tokens / 2)
    assert "file_metrics" in result.to_dict()


def test_metrics_are_omitted_by_default(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "# A\n"})

    result = Analyzer().analyze(docs_builder.path())

    assert result.file_metrics is None
    assert "file_metrics" not in result.to_dict()
    assert "split_suggestions" not in result.to_dict()


def test_custom_tokenizer_and_fallback() -> None:
    def broken(_: str) -> int:
        raise RuntimeError("no model")

    assert Analyzer(tokenizer=lambda text: 7).count_tokens("anything") == 7
    assert Analyzer(tokenizer=broken).count_tokens("abcdefgh") == 2


def _long_document() -> str:
    lines = ["# Big", "## Part One"]
    lines += ["text"] * 60
    lines += ["## Part Two"]
    lines += ["text"] * 10
    lines += ["## Part Three"]
    lines += ["text"] * 150
    return "\n".join(lines) + "\n"


def test_split_suggestions_for_long_file(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"big.md": _long_document(), "small.md": "# Small\n"}, dedent=False)

    result = Analyzer().analyze(docs_builder.path(), include_split_suggestions=True)

    assert result.split_suggestions is not None
    assert len(result.split_suggestions) == 1
    suggestion = result.split_suggestions[0]
    assert suggestion.file == "big.md"
    assert suggestion.reason.startswith("File has too many lines")
    assert [split.heading for split in suggestion.suggested_splits] == ["Part One", "Part Three"]
    first = suggestion.suggested_splits[0]
    assert (first.start_line, first.end_line, first.estimated_lines) == (2, 62, 61)
    assert result.file_metrics is None


def test_no_split_without_qualifying_sections(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"flat.md": "\n".join(["line"] * 250)}, dedent=False)

    result = Analyzer().analyze(docs_builder.path(), include_split_suggestions=True)

    assert result.split_suggestions == []


def test_generate_graph(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"a.md": "[B](b.md) [[c]]\n", "b.md": "# B\n"})
    analyzer = Analyzer()

    graph = analyzer.generate_graph(analyzer.analyze(docs_builder.path()))

    assert graph.splitlines() == [
        "```mermaid",
        "graph TD",
        '  N0["a.md"] -.-> N1["c"]',
        '  N0["a.md"] --> N2["b.md"]',
        "```",
    ]


def test_unreadable_files_are_recorded(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"bad.md": "---\n- a\n---\n", "ok.md": "# Ok\n"})

    result = Analyzer().analyze(docs_builder.path())

    assert result.total_files == 1
    assert [error.file for error in result.errors] == ["bad.md"]


def test_missing_directory_raises(docs_builder: DocsBuilder) -> None:
    with pytest.raises(FileNotFoundError):
        Analyzer().analyze(docs_builder.path() / "nope")
