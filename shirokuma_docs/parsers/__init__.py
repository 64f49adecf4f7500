"""Source scanning: brace matching and JSDoc parsing."""

from .braces import count_braces, find_matching_brace, iter_brace_depths
from .jsdoc import (
    DEFAULT_TAG_CONFIG,
    JsDocListItem,
    JsDocParamItem,
    JsDocParsed,
    TagCategory,
    build_tag_config,
    get_tag_items,
    get_tag_lines,
    get_tag_names,
    get_tag_params,
    get_tag_value,
    has_tag,
    parse_jsdoc,
)

__all__ = [
    "DEFAULT_TAG_CONFIG",
    "JsDocListItem",
    "JsDocParamItem",
    "JsDocParsed",
    "TagCategory",
    "build_tag_config",
    "count_braces",
    "find_matching_brace",
    "get_tag_items",
    "get_tag_lines",
    "get_tag_names",
    "get_tag_params",
    "get_tag_value",
    "has_tag",
    "iter_brace_depths",
    "parse_jsdoc",
]
