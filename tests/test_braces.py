"""Brace scanner behaviour across strings, comments and template literals."""

from __future__ import annotations

import pytest

from shirokuma_docs.parsers.braces import count_braces, find_matching_brace, iter_brace_depths


def test_find_matching_brace_skips_brace_inside_string() -> None:
    assert find_matching_brace('{ "}" }', 0) == 6


def test_count_braces_ignores_string_contents() -> None:
    assert count_braces('const x = "{ }"') == 0


def test_find_matching_brace_handles_nesting() -> None:
    assert find_matching_brace("a{b{c}d}e", 1) == 7
    assert find_matching_brace("a{b{c}d}e", 3) == 5


@pytest.mark.parametrize("index", [-1, 0, 99])
def test_find_matching_brace_requires_open_brace(index: int) -> None:
    assert find_matching_brace("x{}", index) is None


def test_find_matching_brace_returns_none_when_unbalanced() -> None:
    assert find_matching_brace("{ { }", 0) is None


def test_comments_are_inert() -> None:
    assert count_braces("{ // }\n") == 1
    assert count_braces("/* { */ }") == -1
    assert count_braces("// it's {\n}") == -1


def test_escaped_quote_does_not_close_string() -> None:
    assert count_braces('"a\\"{" }') == -1


def test_template_literal_spans_lines() -> None:
    assert count_braces("`{\n}`") == 0
    assert count_braces("const t = `\n  ${value}\n`;\n{") == 1


@pytest.mark.parametrize(
    "text",
    [
        "{}",
        "{ a: { b: '}' } }",
        "{ /* } */ }",
        "{ `}` }",
        "{ // }\n }",
    ],
)
def test_matched_span_is_balanced(text: str) -> None:
    close = find_matching_brace(text, 0)
    assert close is not None
    assert count_braces(text[: close + 1]) == 0


def test_iter_brace_depths_carries_comment_state_across_lines() -> None:
    lines = ["function f() {", "  /* {", "  } */", "}"]

    assert list(iter_brace_depths(lines)) == [(0, 1), (1, 1), (1, 1), (1, 0)]


def test_iter_brace_depths_closes_line_comments_at_line_end() -> None:
    lines = ["{ // open", "}"]

    assert list(iter_brace_depths(lines)) == [(0, 1), (1, 0)]
