"""Common JSDoc parser.

A block is split into a free-text description (everything before the first
``@tag``) and tag sections. Each tag name maps to one parsing category:

- ``single-line``: ``@tag value`` -> ``str``
- ``multi-line``: text up to the next tag -> ``list[str]`` (non-empty lines)
- ``list-format``: ``- key: value (meta)`` bullets -> ``list[JsDocListItem]``
- ``error-code-format``: ``- CODE: description (404)`` -> ``list[JsDocListItem]``
- ``param-format``: ``{type} name - description`` -> ``list[JsDocParamItem]``

Unknown tags are single-line. The helpers at the bottom pull JSDoc blocks out
of TypeScript sources for the annotation extractors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Union

from .braces import find_matching_brace, iter_brace_depths


class TagCategory:
    SINGLE_LINE = "single-line"
    MULTI_LINE = "multi-line"
    LIST_FORMAT = "list-format"
    ERROR_CODE_FORMAT = "error-code-format"
    PARAM_FORMAT = "param-format"

    ALL = (SINGLE_LINE, MULTI_LINE, LIST_FORMAT, ERROR_CODE_FORMAT, PARAM_FORMAT)


def _categorise(category: str, *names: str) -> Dict[str, str]:
    return {name: category for name in names}


DEFAULT_TAG_CONFIG: Mapping[str, str] = MappingProxyType(
    {
        **_categorise(
            TagCategory.SINGLE_LINE,
            "dbTable", "feature", "layer", "module", "category", "inputSchema",
            "outputSchema", "authLevel", "rateLimit", "returns", "return", "type",
            "default", "since", "version", "deprecated", "see", "link", "author",
            "license",
        ),
        **_categorise(TagCategory.MULTI_LINE, "description", "example", "remarks", "note"),
        **_categorise(
            TagCategory.LIST_FORMAT,
            "columns", "indexes", "relations", "usedInAction", "usedInScreen", "dbTables",
        ),
        **_categorise(TagCategory.ERROR_CODE_FORMAT, "errorCodes"),
        **_categorise(TagCategory.PARAM_FORMAT, "param", "throws"),
    }
)


def build_tag_config(overrides: Optional[Mapping[str, str]] = None) -> Mapping[str, str]:
    """Return a read-only tag table with ``overrides`` applied on top of the defaults."""
    if not overrides:
        return DEFAULT_TAG_CONFIG
    merged = dict(DEFAULT_TAG_CONFIG)
    for name, category in overrides.items():
        if category not in TagCategory.ALL:
            raise ValueError(
                f"Unknown JSDoc tag category for @{name}: {category!r} "
                f"(expected one of {', '.join(TagCategory.ALL)})"
            )
        merged[name] = category
    return MappingProxyType(merged)


@dataclass
class JsDocListItem:
    key: str
    value: str
    meta: Optional[str] = None


@dataclass
class JsDocParamItem:
    name: str
    description: str
    type: Optional[str] = None


TagValue = Union[str, List[str], List[JsDocListItem], List[JsDocParamItem]]


@dataclass
class JsDocParsed:
    description: str
    tags: Dict[str, TagValue] = field(default_factory=dict)
    raw: str = ""


_OPENER = re.compile(r"^\s*/\*\*\s?")
_CLOSER = re.compile(r"\s*\*/\s*$")
_LINE_PREFIX = re.compile(r"^\s*\*\s?")
_TAG_LINE = re.compile(r"^@(\w+)(?:\s+(.*))?$")
_LIST_ITEM = re.compile(r"^-\s+([\w.-]+):\s*(.+?)(?:\s*\(([^)]+)\))?\s*$")
_ERROR_CODE_ITEM = re.compile(r"^-\s+([A-Z][A-Z0-9_]*):\s*(.+?)(?:\s*\((\d{3})\))?\s*$")
_PARAM_WITH_TYPE = re.compile(r"^\{([^}]+)\}\s+([\w.$\[\]]+)\s*-?\s*(.*)$")
_PARAM_NO_TYPE = re.compile(r"^([\w.$\[\]]+)\s*-?\s*(.*)$")


def _normalise(block: str) -> List[str]:
    content = _CLOSER.sub("", _OPENER.sub("", block))
    return [_LINE_PREFIX.sub("", line) for line in content.split("\n")]


def _parse_list(lines: List[str], pattern: re.Pattern[str]) -> List[JsDocListItem]:
    items: List[JsDocListItem] = []
    for line in lines:
        match = pattern.match(line)
        if match is None:
            continue
        meta = match.group(3)
        items.append(
            JsDocListItem(
                key=match.group(1),
                value=match.group(2).strip(),
                meta=meta.strip() if meta else None,
            )
        )
    return items


def _parse_param(lines: List[str]) -> List[JsDocParamItem]:
    text = " ".join(line for line in lines if line).strip()
    match = _PARAM_WITH_TYPE.match(text)
    if match:
        return [
            JsDocParamItem(
                name=match.group(2),
                description=match.group(3).strip(),
                type=match.group(1).strip(),
            )
        ]
    match = _PARAM_NO_TYPE.match(text)
    if match:
        return [JsDocParamItem(name=match.group(1), description=match.group(2).strip())]
    return []


def _parse_tag(category: str, lines: List[str]) -> TagValue:
    if category == TagCategory.MULTI_LINE:
        return [line for line in lines if line]
    if category == TagCategory.LIST_FORMAT:
        return _parse_list(lines, _LIST_ITEM)
    if category == TagCategory.ERROR_CODE_FORMAT:
        return _parse_list(lines, _ERROR_CODE_ITEM)
    if category == TagCategory.PARAM_FORMAT:
        return _parse_param(lines)
    return " ".join(line for line in lines if line).strip()


def parse_jsdoc(block: str, tag_config: Optional[Mapping[str, str]] = None) -> JsDocParsed:
    """Parse a ``/** ... */`` block (delimiters optional) into description and tags."""
    table = tag_config if tag_config is not None else DEFAULT_TAG_CONFIG
    lines = [line.strip() for line in _normalise(block)]

    description: List[str] = []
    index = 0
    while index < len(lines) and not lines[index].startswith("@"):
        line = lines[index]
        if line or (description and description[-1]):
            description.append(line)
        index += 1

    tags: Dict[str, TagValue] = {}
    sections: List[tuple[str, List[str]]] = []
    for line in lines[index:]:
        match = _TAG_LINE.match(line)
        if match:
            sections.append((match.group(1), [match.group(2)] if match.group(2) else []))
        elif sections:
            sections[-1][1].append(line)

    for name, body in sections:
        value = _parse_tag(table.get(name, TagCategory.SINGLE_LINE), body)
        existing = tags.get(name)
        if isinstance(existing, list) and isinstance(value, list):
            tags[name] = existing + value  # type: ignore[operator]
        else:
            tags[name] = value

    return JsDocParsed(description="\n".join(description).strip(), tags=tags, raw=block)


def get_tag_value(parsed: JsDocParsed, name: str) -> Optional[str]:
    value = parsed.tags.get(name)
    return value if isinstance(value, str) else None


def get_tag_lines(parsed: JsDocParsed, name: str) -> List[str]:
    value = parsed.tags.get(name)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)  # type: ignore[arg-type]
    return []


def get_tag_items(parsed: JsDocParsed, name: str) -> List[JsDocListItem]:
    value = parsed.tags.get(name)
    if isinstance(value, list) and all(isinstance(item, JsDocListItem) for item in value):
        return list(value)  # type: ignore[arg-type]
    return []


def get_tag_params(parsed: JsDocParsed, name: str) -> List[JsDocParamItem]:
    value = parsed.tags.get(name)
    if isinstance(value, list) and all(isinstance(item, JsDocParamItem) for item in value):
        return list(value)  # type: ignore[arg-type]
    return []


def has_tag(parsed: JsDocParsed, name: str) -> bool:
    return name in parsed.tags


def get_tag_names(parsed: JsDocParsed) -> List[str]:
    return list(parsed.tags)


# Source extraction helpers

_JSDOC_BLOCK = r"/\*\*(?:(?!\*/)[\s\S])*\*/"
_FILE_HEADER = re.compile(rf"^\s*({_JSDOC_BLOCK})")
_EXPORTED_DECLARATION = re.compile(
    rf"(?P<jsdoc>{_JSDOC_BLOCK})\s*export\s+"
    r"(?:(?:async\s+)?function\s+(?P<function>\w+)\s*[<(]|const\s+(?P<const>\w+)\s*=)"
)
_SCREEN_OR_COMPONENT = re.compile(r"@(?:screen|component)\s+(\S+)")
_PG_TABLE = re.compile(r"export\s+const\s+(\w+)\s*=\s*pgTable\s*\(\s*[\"'](\w+)[\"']")
_COLUMN = re.compile(rf"({_JSDOC_BLOCK})\s*(\w+)\s*[,:]")
_INDEX_BLOCK = re.compile(r"\s*,\s*\(\s*\w*\s*\)\s*=>\s*\[([\s\S]*?)\]\s*\)")
_INDEX = re.compile(rf"({_JSDOC_BLOCK})\s*(?:uniqueIndex|index)\s*\(\s*[\"']([^\"']+)[\"']\s*\)")
_PASCAL_EXPORTS = (
    re.compile(r"export\s+(?:async\s+)?function\s+([A-Z][a-zA-Z0-9]*)\s*[(<]"),
    re.compile(r"export\s+default\s+(?:async\s+)?function\s+([A-Z][a-zA-Z0-9]*)\s*[(<]"),
    re.compile(r"export\s+const\s+([A-Z][a-zA-Z0-9]*)\s*[=:]"),
)


@dataclass
class JsDocEntry:
    name: str
    jsdoc: str
    parsed: JsDocParsed


@dataclass
class DbSchemaJsDocs:
    """Table, column and index comments keyed by SQL table name."""

    tables: Dict[str, str] = field(default_factory=dict)
    columns: Dict[str, Dict[str, str]] = field(default_factory=dict)
    indexes: Dict[str, Dict[str, str]] = field(default_factory=dict)
    parsed: Dict[str, JsDocParsed] = field(default_factory=dict)


def extract_file_header_jsdoc(source: str) -> str:
    match = _FILE_HEADER.match(source)
    return match.group(1) if match else ""


def _jsdoc_ending_at(source: str, position: int) -> str:
    """Return the JSDoc block that ends right before ``position`` (whitespace allowed)."""
    before = source[:position]
    end = before.rfind("*/")
    if end == -1 or before[end + 2 :].strip():
        return ""
    start = before.rfind("/**", 0, end)
    if start == -1:
        return ""
    return before[start : end + 2]


def extract_jsdoc_before(source: str, target_name: str) -> str:
    """Find the JSDoc attached to ``target_name``'s definition.

    Falls back to the file header when its ``@screen``/``@component`` value
    equals ``target_name``.
    """
    name = re.escape(target_name)
    patterns = (
        rf"export\s+const\s+{name}\s*=",
        rf"export\s+(?:async\s+)?function\s+{name}\s*[<(]",
        rf"const\s+{name}\s*=",
        rf"(?:async\s+)?function\s+{name}\s*[<(]",
    )
    for pattern in patterns:
        match = re.search(pattern, source)
        if match is None:
            continue
        block = _jsdoc_ending_at(source, match.start())
        if block:
            return block

    header = extract_file_header_jsdoc(source)
    if header:
        tagged = _SCREEN_OR_COMPONENT.search(header)
        if tagged and tagged.group(1) == target_name:
            return header
    return ""


def extract_all_jsdocs(
    source: str, tag_config: Optional[Mapping[str, str]] = None
) -> List[JsDocEntry]:
    """Documented top-level ``export function`` / ``export const`` declarations, in order."""
    depths = [before for before, _ in iter_brace_depths(source.split("\n"))]
    entries: List[JsDocEntry] = []
    for match in _EXPORTED_DECLARATION.finditer(source):
        export_line = source.count("\n", 0, match.end("jsdoc"))
        if depths and depths[export_line] > 0:
            continue
        jsdoc = match.group("jsdoc")
        entries.append(
            JsDocEntry(
                name=match.group("function") or match.group("const"),
                jsdoc=jsdoc,
                parsed=parse_jsdoc(jsdoc, tag_config),
            )
        )
    return entries


def extract_exported_component_name(source: str) -> Optional[str]:
    """Return the first exported PascalCase function or const, if any."""
    for pattern in _PASCAL_EXPORTS:
        match = pattern.search(source)
        if match:
            return match.group(1)
    return None


def _flatten_comment(block: str) -> str:
    return " ".join(line.strip() for line in _normalise(block) if line.strip())


def _snake_case(name: str) -> str:
    return re.sub(r"[A-Z]", lambda match: "_" + match.group(0).lower(), name)


def extract_db_schema_jsdocs(
    source: str, tag_config: Optional[Mapping[str, str]] = None
) -> DbSchemaJsDocs:
    """Collect table, column and index comments from Drizzle ``pgTable`` definitions."""
    result = DbSchemaJsDocs()
    for match in _PG_TABLE.finditer(source):
        table = match.group(2)
        block = _jsdoc_ending_at(source, match.start())
        if not block:
            continue
        parsed = parse_jsdoc(block, tag_config)
        if parsed.description:
            result.tables[table] = parsed.description
        result.parsed[table] = parsed

        open_index = source.find("{", match.end())
        close_index = find_matching_brace(source, open_index) if open_index != -1 else None
        if close_index is None:
            continue

        columns: Dict[str, str] = {}
        for column in _COLUMN.finditer(source, open_index + 1, close_index):
            comment, name = _flatten_comment(column.group(1)), column.group(2)
            if comment and name != "id":
                columns[_snake_case(name)] = comment
        if columns:
            result.columns[table] = columns

        index_block = _INDEX_BLOCK.match(source, close_index + 1)
        if index_block:
            indexes = {
                item.group(2): _flatten_comment(item.group(1))
                for item in _INDEX.finditer(index_block.group(1))
                if _flatten_comment(item.group(1))
            }
            if indexes:
                result.indexes[table] = indexes
    return result


__all__ = [
    "DEFAULT_TAG_CONFIG",
    "DbSchemaJsDocs",
    "JsDocEntry",
    "JsDocListItem",
    "JsDocParamItem",
    "JsDocParsed",
    "TagCategory",
    "TagValue",
    "build_tag_config",
    "extract_all_jsdocs",
    "extract_db_schema_jsdocs",
    "extract_exported_component_name",
    "extract_file_header_jsdoc",
    "extract_jsdoc_before",
    "get_tag_items",
    "get_tag_lines",
    "get_tag_names",
    "get_tag_params",
    "get_tag_value",
    "has_tag",
    "parse_jsdoc",
]
