"""Source discovery and tree-sitter parsing of Go declaration files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

from tagvet.errors import TagvetError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tree_sitter import Tree

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".go"
TEST_SUFFIX = "_test.go"

# Directories never descended into on a recursive scan.
_SKIP_DIRS: frozenset[str] = frozenset({"vendor", "testdata", "node_modules"})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ScopeError(TagvetError):
    """Raised when the scanned path yields no declaration files."""


class SourceParseError(TagvetError):
    """Raised when a declaration file cannot be read or parsed."""


# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LangConfig:
    """Tree-sitter configuration for the declaration language."""

    language: Language
    type_spec_types: frozenset[str]  # nodes that name the enclosing struct
    struct_types: frozenset[str]
    pruned_types: frozenset[str]  # subtrees that cannot hold field tags


_LANG_CACHE: dict[str, LangConfig] = {}


def get_lang_config() -> LangConfig:
    """Return the cached Go grammar configuration, loading it on first use."""
    config = _LANG_CACHE.get(SOURCE_SUFFIX)
    if config is not None:
        return config

    import tree_sitter_go as tsgo

    config = LangConfig(
        language=Language(tsgo.language()),
        type_spec_types=frozenset({"type_spec", "type_alias"}),
        struct_types=frozenset({"struct_type"}),
        pruned_types=frozenset(
            {
                "function_declaration",
                "method_declaration",
                "func_literal",
                "var_declaration",
                "const_declaration",
            }
        ),
    )
    _LANG_CACHE[SOURCE_SUFFIX] = config
    return config


def clear_cache() -> None:
    """Clear the grammar cache (useful for testing)."""
    _LANG_CACHE.clear()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceFile:
    """A parsed declaration file."""

    path: Path
    tree: Tree


def _model_file_names(models: Iterable[str]) -> frozenset[str]:
    return frozenset(f"{model.lower()}{SOURCE_SUFFIX}" for model in models if model)


def _is_candidate(path: Path, wanted: frozenset[str]) -> bool:
    name = path.name.lower()
    if not name.endswith(SOURCE_SUFFIX):
        return False
    if name.endswith(TEST_SUFFIX):
        logger.debug("Skipping test file %s", path)
        return False
    return not wanted or name in wanted


def _in_skipped_dir(path: Path, root: Path) -> bool:
    for part in path.relative_to(root).parts[:-1]:
        if part.startswith(".") or part in _SKIP_DIRS:
            logger.debug("Skipping %s (inside %s/)", path, part)
            return True
    return False


def discover_sources(
    root: Path,
    models: Iterable[str] = (),
    *,
    recursive: bool = False,
) -> list[Path]:
    """List the declaration files under *root*, sorted by path.

    Test files (``*_test.go``) are always skipped.  When *models* is non-empty
    only files named ``<model>.go`` (case-insensitive) are kept.

    Raises
    ------
    ScopeError
        If *root* is not a directory or nothing survives the filter.
    """
    if not root.is_dir():
        msg = f"No structs found at {root}: not a directory"
        raise ScopeError(msg)

    wanted = _model_file_names(models)

    if recursive:
        candidates = (
            p for p in root.rglob(f"*{SOURCE_SUFFIX}") if not _in_skipped_dir(p, root)
        )
    else:
        candidates = root.glob(f"*{SOURCE_SUFFIX}")

    paths = sorted(p for p in candidates if p.is_file() and _is_candidate(p, wanted))
    if not paths:
        msg = f"No structs found at {root}"
        raise ScopeError(msg)

    missing = wanted - {p.name.lower() for p in paths}
    if missing:
        logger.warning("No source file for model(s): %s", ", ".join(sorted(missing)))

    logger.debug("Discovered %d source file(s) under %s", len(paths), root)
    return paths


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_source(path: Path) -> SourceFile:
    """Parse one declaration file.

    Raises
    ------
    SourceParseError
        If the file cannot be read as UTF-8 or the tree contains syntax errors.
    """
    try:
        content = path.read_bytes()
        content.decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read {path}: {exc}"
        raise SourceParseError(msg) from exc

    parser = Parser(get_lang_config().language)
    tree = parser.parse(content)

    if tree.root_node.has_error:
        # tree-sitter uses 0-based rows; report 1-based lines.
        line = _first_error_line(tree)
        msg = f"Syntax error in {path}" + (f" near line {line}" if line is not None else "")
        raise SourceParseError(msg)

    return SourceFile(path=path, tree=tree)


def _first_error_line(tree: Tree) -> int | None:
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point.row + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


def load_sources(
    root: Path,
    models: Iterable[str] = (),
    *,
    recursive: bool = False,
) -> list[SourceFile]:
    """Discover and parse every declaration file in scope.

    Parsing is sequential and completes before any extraction starts; the
    first failure aborts the whole load.
    """
    paths = discover_sources(root, models, recursive=recursive)
    sources = [parse_source(path) for path in paths]
    logger.info("Parsed %d source file(s) from %s", len(sources), root)
    return sources
