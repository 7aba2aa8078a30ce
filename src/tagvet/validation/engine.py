"""Rule engine: run registered rules and the duplicate check over a tag stream."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tagvet.validation.rules import Finding

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tagvet.extraction.tag import TagRecord
    from tagvet.validation.rules import RuleRegistry, RuleResult

logger = logging.getLogger(__name__)

NO_RULES_MESSAGE = "there are no rules to run, consider adding the default ones"
NO_TAGS_MESSAGE = "No tags found"


@dataclass
class DuplicateCache:
    """``(struct, tag, value)`` keys seen so far in one run.

    Build a fresh cache for every run; it is not safe for concurrent use.
    """

    _seen: set[tuple[str, str, str]] = field(default_factory=set)

    @staticmethod
    def key(tag: TagRecord) -> tuple[str, str, str]:
        return (tag.struct_name, tag.name, tag.value)

    def mark(self, tag: TagRecord) -> bool:
        """Record *tag*'s key and return whether it had been seen before."""
        key = self.key(tag)
        if key in self._seen:
            return True
        self._seen.add(key)
        return False

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, key: object) -> bool:
        return key in self._seen


@dataclass
class EngineStats:
    """Counters filled in by :func:`evaluate`."""

    tags_checked: int = 0
    rules_executed: int = 0


def check_duplicate(tag: TagRecord, cache: DuplicateCache) -> list[Finding]:
    """Report *tag* if its key is already cached; the key is cached either way."""
    if not cache.mark(tag):
        return []
    return [
        Finding.for_tag(
            tag,
            f"Duplicate tag value {tag.value} in {tag.struct_name}.{tag.name}",
            kind="duplicate",
        )
    ]


def _normalize(tag: TagRecord, result: RuleResult) -> list[Finding]:
    return [
        item if isinstance(item, Finding) else Finding.for_tag(tag, str(item)) for item in result
    ]


def evaluate(
    tags: Iterable[TagRecord],
    registry: RuleRegistry,
    cache: DuplicateCache,
    *,
    allow_duplicates: bool = False,
    stats: EngineStats | None = None,
) -> list[Finding]:
    """Apply the duplicate check and every applicable rule to each tag.

    Per tag the order is: duplicate check (unless *allow_duplicates*), the
    rules registered for the tag's name, then the wildcard rules.  Every rule
    runs; findings are accumulated, never raised.

    Returns a single ``configuration`` finding when *registry* is empty and a
    single ``no_tags`` finding when *tags* yields nothing.
    """
    if not registry:
        return [Finding(kind="configuration", message=NO_RULES_MESSAGE)]

    stats = stats if stats is not None else EngineStats()
    findings: list[Finding] = []

    for tag in tags:
        stats.tags_checked += 1

        if not allow_duplicates:
            findings.extend(check_duplicate(tag, cache))

        for rule in registry.rules_for(tag.name):
            stats.rules_executed += 1
            findings.extend(_normalize(tag, rule(tag)))

    if stats.tags_checked == 0:
        return [Finding(kind="no_tags", message=NO_TAGS_MESSAGE)]

    logger.debug(
        "Checked %d tag(s) with %d rule call(s): %d finding(s)",
        stats.tags_checked,
        stats.rules_executed,
        len(findings),
    )
    return findings
