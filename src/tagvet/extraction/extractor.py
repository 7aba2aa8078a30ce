"""Walk a parsed declaration file and yield the struct field tags it declares."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tagvet.extraction.sources import get_lang_config
from tagvet.extraction.tag import TagRecord, match_tags

if TYPE_CHECKING:
    import re
    from collections.abc import Iterator

    from tree_sitter import Node as TSNode

    from tagvet.extraction.sources import SourceFile


def _node_text(node: TSNode | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def _field_tags(struct_node: TSNode) -> Iterator[str]:
    """Yield the raw tag literal of every tagged field in a ``struct_type``."""
    for child in struct_node.named_children:
        if child.type != "field_declaration_list":
            continue
        for field in child.named_children:
            if field.type != "field_declaration":
                continue
            tag = field.child_by_field_name("tag")
            if tag is not None:
                yield _node_text(tag)


def extract_tags(source: SourceFile, matcher: re.Pattern[str]) -> Iterator[TagRecord]:
    """Lazily yield a :class:`TagRecord` for every matching field tag in *source*.

    Depth-first, in declaration order.  Each record is stamped with the name
    of the nearest enclosing type declaration, so fields of a nested struct
    literal belong to the outer struct.  Function bodies and ``var``/``const``
    declarations are never entered.  Tags the matcher does not recognise are
    skipped silently.
    """
    config = get_lang_config()

    # (node, enclosing struct name)
    stack: list[tuple[TSNode, str]] = [(source.tree.root_node, "")]
    while stack:
        node, struct_name = stack.pop()

        if node.type in config.pruned_types:
            continue

        if node.type in config.type_spec_types:
            struct_name = _node_text(node.child_by_field_name("name"))
        elif node.type in config.struct_types:
            for raw_tag in _field_tags(node):
                for name, value in match_tags(raw_tag, matcher):
                    yield TagRecord(name=name, value=value, struct_name=struct_name)

        stack.extend((child, struct_name) for child in reversed(node.named_children))
