"""Tests for tagvet.validation.engine — duplicate cache and rule dispatch."""

from __future__ import annotations

from tagvet.extraction.tag import WILDCARD, TagRecord
from tagvet.validation.engine import (
    NO_RULES_MESSAGE,
    NO_TAGS_MESSAGE,
    DuplicateCache,
    EngineStats,
    check_duplicate,
    evaluate,
)
from tagvet.validation.rules import Finding, RuleRegistry


def _tag(value: str, name: str = "db", struct_name: str = "Customer") -> TagRecord:
    return TagRecord(name=name, value=value, struct_name=struct_name)


def _noop(tag: TagRecord) -> list[Finding]:
    return []


class TestDuplicateCache:
    def test_first_sighting_is_not_duplicate(self) -> None:
        cache = DuplicateCache()
        assert check_duplicate(_tag("id"), cache) == []
        assert DuplicateCache.key(_tag("id")) in cache

    def test_later_sightings_are_duplicates(self) -> None:
        cache = DuplicateCache()
        results = [check_duplicate(_tag("id"), cache) for _ in range(4)]
        assert [len(r) for r in results] == [0, 1, 1, 1]
        assert results[1][0].message == "Duplicate tag value id in Customer.db"
        assert len(cache) == 1

    def test_key_includes_struct_and_tag_name(self) -> None:
        cache = DuplicateCache()
        assert check_duplicate(_tag("id"), cache) == []
        assert check_duplicate(_tag("id", struct_name="Order"), cache) == []
        assert check_duplicate(_tag("id", name="json"), cache) == []
        assert len(cache) == 3


class TestEvaluate:
    def test_empty_registry_is_configuration_finding(self) -> None:
        findings = evaluate([_tag("id")], RuleRegistry(), DuplicateCache())
        assert findings == [Finding(kind="configuration", message=NO_RULES_MESSAGE)]

    def test_no_tags_is_a_finding_not_a_pass(self) -> None:
        registry = RuleRegistry()
        registry.add_defaults("db")
        findings = evaluate([], registry, DuplicateCache())
        assert findings == [Finding(kind="no_tags", message=NO_TAGS_MESSAGE)]

    def test_clean_tags_pass(self) -> None:
        registry = RuleRegistry()
        registry.add_defaults("db")
        tags = [_tag("created_at"), _tag("updated_at")]
        assert evaluate(tags, registry, DuplicateCache()) == []

    def test_n_copies_give_n_minus_one_duplicates(self) -> None:
        registry = RuleRegistry()
        registry.add("db", _noop)
        findings = evaluate([_tag("id")] * 5, registry, DuplicateCache())
        assert [f.kind for f in findings] == ["duplicate"] * 4

    def test_allow_duplicates_skips_check(self) -> None:
        registry = RuleRegistry()
        registry.add("db", _noop)
        cache = DuplicateCache()
        findings = evaluate([_tag("id")] * 5, registry, cache, allow_duplicates=True)
        assert findings == []
        assert len(cache) == 0

    def test_order_duplicate_then_named_then_wildcard(self) -> None:
        registry = RuleRegistry()
        registry.add(WILDCARD, lambda t: ["wild"])
        registry.add("db", lambda t: ["named-1", "named-2"])
        registry.add("db", lambda t: ["named-3"])
        findings = evaluate([_tag("x"), _tag("x")], registry, DuplicateCache())
        messages = [f.message for f in findings]
        assert messages == [
            "named-1",
            "named-2",
            "named-3",
            "wild",
            "Duplicate tag value x in Customer.db",
            "named-1",
            "named-2",
            "named-3",
            "wild",
        ]

    def test_string_results_become_custom_findings(self) -> None:
        registry = RuleRegistry()
        registry.add("db", lambda t: ["Too long"])
        (finding,) = evaluate([_tag("created_at")], registry, DuplicateCache())
        assert finding.kind == "custom"
        assert (finding.struct_name, finding.tag_name, finding.tag_value) == (
            "Customer",
            "db",
            "created_at",
        )

    def test_failing_rule_does_not_suppress_others(self) -> None:
        registry = RuleRegistry()
        registry.add("db", lambda t: ["db says no"])
        registry.add("json", lambda t: ["json says no"])
        registry.add(WILDCARD, lambda t: [f"wild {t.name}"])
        tags = [_tag("a", name="db"), _tag("b", name="json")]
        messages = [f.message for f in evaluate(tags, registry, DuplicateCache())]
        assert messages == ["db says no", "wild db", "json says no", "wild json"]

    def test_rules_for_other_names_are_not_run(self) -> None:
        registry = RuleRegistry()
        registry.add("json", lambda t: ["json only"])
        assert evaluate([_tag("a", name="db")], registry, DuplicateCache()) == []

    def test_stats(self) -> None:
        registry = RuleRegistry()
        registry.add_defaults()
        stats = EngineStats()
        evaluate([_tag("a"), _tag("b")], registry, DuplicateCache(), stats=stats)
        assert stats.tags_checked == 2
        assert stats.rules_executed == 6

    def test_accepts_any_iterable(self) -> None:
        registry = RuleRegistry()
        registry.add("db", _noop)
        assert evaluate(iter([_tag("a")]), registry, DuplicateCache()) == []
