"""Tag records and the struct-tag matcher."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

# Reserved registry key: rules under it apply to every tag name.
WILDCARD = "*"

# Name part used when the wildcard is requested.
_ANY_TAG_NAME = "[a-z0-9_]+"


@dataclass(frozen=True)
class TagRecord:
    """One ``name:"value"`` pair found on a struct field."""

    name: str
    value: str
    struct_name: str


def build_tag_matcher(tag_names: Iterable[str]) -> re.Pattern[str]:
    """Compile a regex recognising ``<name>:"<value>"`` for the accepted names.

    When *tag_names* contains :data:`WILDCARD` any lowercase identifier is
    accepted.  Group 1 is the tag name, group 2 the raw value.
    """
    names = list(tag_names)
    if not names or WILDCARD in names:
        name_part = _ANY_TAG_NAME
    else:
        # Longest first so ``db`` never shadows ``dbx`` in the alternation.
        name_part = "|".join(re.escape(n) for n in sorted(set(names), key=len, reverse=True))

    return re.compile(rf'(?<![\w-])({name_part})[ ]*:[ ]*"([^"]*)"')


def match_tags(raw_tag: str, matcher: re.Pattern[str]) -> Iterator[tuple[str, str]]:
    """Yield every non-overlapping ``(name, value)`` pair in a raw field tag."""
    for match in matcher.finditer(raw_tag):
        yield match.group(1), match.group(2)
