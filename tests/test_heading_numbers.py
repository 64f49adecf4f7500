"""Heading number stripping."""

from __future__ import annotations

import pytest

from shirokuma_docs.md.heading_numbers import (
    extract_numbered_headings,
    has_numbered_headings,
    strip_heading_numbers,
)


def test_strip_simple_number() -> None:
    assert strip_heading_numbers("## 1. Introduction\n") == "## Introduction\n"


def test_strip_dotted_number() -> None:
    assert strip_heading_numbers("### 2.1. Setup") == "### Setup"


def test_code_blocks_are_untouched() -> None:
    source = "```\n## 1. Example\n```\n## 2. Real\n"

    assert strip_heading_numbers(source) == "```\n## 1. Example\n```\n## Real\n"


@pytest.mark.parametrize(
    "source",
    [
        "## 1. Introduction\n",
        "## 1. 2. Title\n",
        "# Plain\n## 3.4.5. Deep\ntext 1. not a heading\n",
    ],
)
def test_strip_is_idempotent(source: str) -> None:
    once = strip_heading_numbers(source)

    assert strip_heading_numbers(once) == once
    assert not has_numbered_headings(once)


def test_extract_numbered_headings() -> None:
    found = extract_numbered_headings("# Title\n### 2.1. Setup\n")

    assert len(found) == 1
    heading = found[0]
    assert (heading.line_number, heading.level, heading.number, heading.title) == (
        2,
        3,
        "2.1",
        "Setup",
    )
    assert heading.raw == "### 2.1. Setup"


def test_has_numbered_headings_ignores_code() -> None:
    assert has_numbered_headings("```\n## 1. Example\n```\n") is False
    assert has_numbered_headings("## 1. Example\n") is True
