"""Findings, the rule registry, and the default tag rules."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Union

from tagvet.extraction.tag import WILDCARD, TagRecord

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

FINDING_KINDS: frozenset[str] = frozenset(
    {"configuration", "no_tags", "duplicate", "charset", "trailing", "empty", "custom", "pattern"}
)

# Characters a tag value may contain.
_ILLEGAL_RUN_RE = re.compile(r"[^a-z0-9_ ]+")
# Characters a tag value may end on.
_BAD_ENDING_RE = re.compile(r"[^a-z0-9]$")

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Finding:
    """A single validation error.

    Run-level findings (``configuration``, ``no_tags``) carry no tag context.
    """

    kind: str
    message: str
    struct_name: str | None = None
    tag_name: str | None = None
    tag_value: str | None = None

    def __str__(self) -> str:
        return self.message

    @classmethod
    def for_tag(cls, tag: TagRecord, message: str, kind: str = "custom") -> Finding:
        """Build a finding stamped with *tag*'s struct, name, and value."""
        return cls(
            kind=kind,
            message=message,
            struct_name=tag.struct_name,
            tag_name=tag.name,
            tag_value=tag.value,
        )


RuleResult = Sequence[Union[Finding, str]]


class Rule(Protocol):
    """Validate one tag, returning zero or more findings.

    Plain strings are accepted and become ``custom`` findings.
    """

    def __call__(self, tag: TagRecord) -> RuleResult: ...


# ---------------------------------------------------------------------------
# Default rules
# ---------------------------------------------------------------------------


def check_charset(tag: TagRecord) -> list[Finding]:
    """Flag every distinct run of characters outside ``[a-z0-9_ ]``."""
    findings: list[Finding] = []
    seen: set[str] = set()
    for match in _ILLEGAL_RUN_RE.finditer(tag.value):
        run = match.group(0)
        if run in seen:
            continue
        seen.add(run)
        findings.append(
            Finding.for_tag(
                tag,
                f"Invalid symbols {run} in {tag.struct_name}.{tag.name}.{tag.value}",
                kind="charset",
            )
        )
    return findings


def check_trailing(tag: TagRecord) -> list[Finding]:
    """Flag a non-empty value whose last character is not ``[a-z0-9]``."""
    match = _BAD_ENDING_RE.search(tag.value)
    if match is None:
        return []
    return [
        Finding.for_tag(
            tag,
            f"Tag cannot end on {match.group(0)} in {tag.struct_name}.{tag.name}.{tag.value}",
            kind="trailing",
        )
    ]


def check_empty(tag: TagRecord) -> list[Finding]:
    """Flag an empty value."""
    if tag.value:
        return []
    return [
        Finding.for_tag(tag, f"Tag cannot be empty {tag.struct_name}.{tag.name}", kind="empty")
    ]


DEFAULT_RULES: tuple[Rule, ...] = (check_charset, check_trailing, check_empty)


def pattern_rule(
    pattern: str | re.Pattern[str],
    *,
    forbid: bool = True,
    message: str | None = None,
) -> Callable[[TagRecord], list[Finding]]:
    """Build a rule from a regular expression.

    With *forbid* the rule flags values the pattern matches; otherwise it
    flags values the pattern does not match.  *message* may use the
    ``{struct}``, ``{tag}``, ``{value}`` and ``{match}`` placeholders.
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    if message is None:
        verb = "must not match" if forbid else "must match"
        message = f"{{struct}}.{{tag}}.{{value}} {verb} {regex.pattern}"

    def _rule(tag: TagRecord) -> list[Finding]:
        match = regex.search(tag.value)
        if (match is not None) != forbid:
            return []
        text = message.format(
            struct=tag.struct_name,
            tag=tag.name,
            value=tag.value,
            match=match.group(0) if match is not None else "",
        )
        return [Finding.for_tag(tag, text, kind="pattern")]

    return _rule


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class RuleRegistry:
    """Rules keyed by tag name; :data:`WILDCARD` holds rules for every tag.

    Rules run in registration order.  The registry must not be mutated while
    a run is in flight.
    """

    def __init__(self) -> None:
        self._rules: dict[str, list[Rule]] = {}

    def add(self, tag_name: str, rule: Rule) -> None:
        if not tag_name:
            msg = "tag name must be a non-empty string"
            raise ValueError(msg)
        self._rules.setdefault(tag_name, []).append(rule)

    def add_defaults(self, *tag_names: str) -> None:
        """Register :data:`DEFAULT_RULES` per tag name, or under the wildcard."""
        for tag_name in tag_names or (WILDCARD,):
            for rule in DEFAULT_RULES:
                self.add(tag_name, rule)

    def tag_names(self) -> list[str]:
        return list(self._rules)

    def rules_for(self, tag_name: str) -> list[Rule]:
        """Rules for *tag_name* followed by the wildcard rules."""
        return [*self._rules.get(tag_name, []), *self._rules.get(WILDCARD, [])]

    def __len__(self) -> int:
        return sum(len(rules) for rules in self._rules.values())

    def __bool__(self) -> bool:
        return bool(self._rules)

    def __iter__(self) -> Iterator[tuple[str, Rule]]:
        for tag_name, rules in self._rules.items():
            for rule in rules:
                yield tag_name, rule
