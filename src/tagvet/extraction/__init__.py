"""Extraction domain — source discovery, tree walk, fan-in of tag streams."""

from tagvet.extraction.extractor import extract_tags
from tagvet.extraction.multiplexer import multiplex
from tagvet.extraction.sources import (
    LangConfig,
    ScopeError,
    SourceFile,
    SourceParseError,
    clear_cache,
    discover_sources,
    get_lang_config,
    load_sources,
    parse_source,
)
from tagvet.extraction.tag import WILDCARD, TagRecord, build_tag_matcher, match_tags

__all__ = [
    "WILDCARD",
    "LangConfig",
    "ScopeError",
    "SourceFile",
    "SourceParseError",
    "TagRecord",
    "build_tag_matcher",
    "clear_cache",
    "discover_sources",
    "extract_tags",
    "get_lang_config",
    "load_sources",
    "match_tags",
    "multiplex",
    "parse_source",
]
