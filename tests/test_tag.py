"""Tests for tagvet.extraction.tag — TagRecord and the tag matcher."""

from __future__ import annotations

import dataclasses

import pytest

from tagvet.extraction.tag import WILDCARD, TagRecord, build_tag_matcher, match_tags


class TestTagRecord:
    def test_fields(self) -> None:
        tag = TagRecord(name="db", value="created_at", struct_name="Customer")
        assert (tag.name, tag.value, tag.struct_name) == ("db", "created_at", "Customer")

    def test_immutable(self) -> None:
        tag = TagRecord(name="db", value="id", struct_name="Customer")
        with pytest.raises(dataclasses.FrozenInstanceError):
            tag.value = "other"  # type: ignore[misc]

    def test_hashable_and_equal_by_value(self) -> None:
        a = TagRecord("db", "id", "Customer")
        b = TagRecord("db", "id", "Customer")
        assert a == b
        assert len({a, b}) == 1


class TestBuildTagMatcher:
    def test_single_name(self) -> None:
        matcher = build_tag_matcher(["db"])
        raw = '`json:"id" db:"id"`'
        assert list(match_tags(raw, matcher)) == [("db", "id")]

    def test_multiple_names_in_declaration_order(self) -> None:
        matcher = build_tag_matcher(["db", "json"])
        raw = '`json:"created_at" db:"created"`'
        assert list(match_tags(raw, matcher)) == [("json", "created_at"), ("db", "created")]

    def test_wildcard_accepts_any_lowercase_name(self) -> None:
        matcher = build_tag_matcher([WILDCARD])
        raw = '`json:"id" db:"id" yaml_key:"x1"`'
        names = [name for name, _ in match_tags(raw, matcher)]
        assert names == ["json", "db", "yaml_key"]

    def test_wildcard_wins_over_named(self) -> None:
        matcher = build_tag_matcher(["db", WILDCARD])
        assert list(match_tags('`validate:"required"`', matcher)) == [("validate", "required")]

    def test_spaces_around_colon(self) -> None:
        matcher = build_tag_matcher(["db"])
        assert list(match_tags('`db : "name"`', matcher)) == [("db", "name")]

    def test_empty_value(self) -> None:
        matcher = build_tag_matcher(["db"])
        assert list(match_tags('`db:""`', matcher)) == [("db", "")]

    def test_value_kept_as_written(self) -> None:
        matcher = build_tag_matcher(["db"])
        assert list(match_tags('`db:"Created-At "`', matcher)) == [("db", "Created-At ")]

    def test_name_not_matched_inside_longer_key(self) -> None:
        matcher = build_tag_matcher(["db"])
        assert list(match_tags('`mydb:"x" my-db:"y"`', matcher)) == []

    def test_longer_name_not_shadowed(self) -> None:
        matcher = build_tag_matcher(["db", "dbx"])
        assert list(match_tags('`dbx:"a"`', matcher)) == [("dbx", "a")]

    def test_names_are_escaped(self) -> None:
        matcher = build_tag_matcher(["a.b"])
        assert list(match_tags('`axb:"1"`', matcher)) == []
        assert list(match_tags('`a.b:"1"`', matcher)) == [("a.b", "1")]

    def test_malformed_tag_yields_nothing(self) -> None:
        matcher = build_tag_matcher(["db"])
        assert list(match_tags("`db:created_at`", matcher)) == []
        assert list(match_tags('`db:"unterminated`', matcher)) == []
