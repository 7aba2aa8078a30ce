"""Load ``.tagvet.yml`` and apply it to a :class:`Validator`."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml

from tagvet.errors import TagvetError
from tagvet.extraction.tag import WILDCARD
from tagvet.validation.rules import pattern_rule

if TYPE_CHECKING:
    from pathlib import Path

    from tagvet.validation.validator import Validator

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".tagvet.yml"
SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})

_TAG_NAME_RE = re.compile(r"^[a-z0-9_]+$")


class ConfigError(TagvetError):
    """Raised when the configuration file is invalid."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PatternRuleConfig:
    """A regex rule declared in the config file."""

    name: str
    tag: str
    pattern: str
    forbid: bool = True
    message: str | None = None


@dataclass(frozen=True)
class TagvetConfig:
    """Settings for one validation run."""

    tags: tuple[str, ...] = ()
    default_rules: bool = True
    allow_duplicates: bool = False
    recursive: bool = False
    models: tuple[str, ...] = ()
    max_workers: int | None = None
    rules: tuple[PatternRuleConfig, ...] = ()


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------


def _parse_str_list(data: dict[str, object], key: str) -> tuple[str, ...]:
    raw = data.get(key, [])
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        msg = f"{CONFIG_FILENAME}: '{key}' must be a list of strings"
        raise ValueError(msg)
    return tuple(str(item) for item in raw)


def _parse_bool(data: dict[str, object], key: str, default: bool) -> bool:
    raw = data.get(key, default)
    if not isinstance(raw, bool):
        msg = f"{CONFIG_FILENAME}: '{key}' must be true or false"
        raise ValueError(msg)
    return raw


def _check_tag_name(tag: str, context: str) -> None:
    if tag != WILDCARD and not _TAG_NAME_RE.match(tag):
        msg = f"{context}: invalid tag name '{tag}', expected [a-z0-9_]+ or '{WILDCARD}'"
        raise ValueError(msg)


def _parse_pattern_rule(idx: int, data: object, seen_names: set[str]) -> PatternRuleConfig:
    if not isinstance(data, dict):
        msg = f"{CONFIG_FILENAME}: rule at index {idx} must be a mapping"
        raise ValueError(msg)

    name = data.get("name")
    if name is None or not isinstance(name, str) or not name.strip():
        msg = f"{CONFIG_FILENAME}: rule at index {idx} missing required 'name' field"
        raise ValueError(msg)
    if name in seen_names:
        msg = f"{CONFIG_FILENAME}: Duplicate rule name '{name}'"
        raise ValueError(msg)
    seen_names.add(name)

    tag = str(data.get("tag", WILDCARD))
    _check_tag_name(tag, f"{CONFIG_FILENAME}: rule '{name}'")

    pattern = data.get("pattern")
    if not isinstance(pattern, str) or not pattern:
        msg = f"{CONFIG_FILENAME}: rule '{name}' missing required 'pattern' field"
        raise ValueError(msg)
    try:
        re.compile(pattern)
    except re.error as exc:
        msg = f"{CONFIG_FILENAME}: rule '{name}' has invalid pattern: {exc}"
        raise ValueError(msg) from exc

    forbid = _parse_bool(data, "forbid", True)
    message = data.get("message")

    return PatternRuleConfig(
        name=name,
        tag=tag,
        pattern=pattern,
        forbid=forbid,
        message=str(message) if message is not None else None,
    )


def parse_config(data: object) -> TagvetConfig:
    """Validate a decoded YAML document.  Raises ``ValueError`` on schema errors."""
    if data is None:
        return TagvetConfig()
    if not isinstance(data, dict):
        msg = f"{CONFIG_FILENAME} must be a YAML mapping"
        raise ValueError(msg)

    version = data.get("version")
    if version is None:
        msg = f"{CONFIG_FILENAME}: missing required 'version' field"
        raise ValueError(msg)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"{CONFIG_FILENAME}: unsupported version {version}, expected one of {expected}"
        raise ValueError(msg)

    tags = _parse_str_list(data, "tags")
    for tag in tags:
        _check_tag_name(tag, f"{CONFIG_FILENAME}: tags")

    max_workers_raw = data.get("max_workers")
    max_workers: int | None = None
    if max_workers_raw is not None:
        if isinstance(max_workers_raw, bool) or not isinstance(max_workers_raw, int):
            msg = f"{CONFIG_FILENAME}: 'max_workers' must be a positive integer"
            raise ValueError(msg)
        if max_workers_raw < 1:
            msg = f"{CONFIG_FILENAME}: 'max_workers' must be a positive integer"
            raise ValueError(msg)
        max_workers = max_workers_raw

    rules_data = data.get("rules", [])
    if rules_data is None:
        rules_data = []
    if not isinstance(rules_data, list):
        msg = f"{CONFIG_FILENAME}: 'rules' must be a list"
        raise ValueError(msg)

    seen_names: set[str] = set()
    rules = tuple(
        _parse_pattern_rule(idx, rule_data, seen_names) for idx, rule_data in enumerate(rules_data)
    )

    return TagvetConfig(
        tags=tags,
        default_rules=_parse_bool(data, "default_rules", True),
        allow_duplicates=_parse_bool(data, "allow_duplicates", False),
        recursive=_parse_bool(data, "recursive", False),
        models=_parse_str_list(data, "models"),
        max_workers=max_workers,
        rules=rules,
    )


def load_config(path: Path) -> TagvetConfig:
    """Read and validate a config file.

    Raises
    ------
    ConfigError
        When the file cannot be read or does not match the schema.
    """
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        msg = f"Cannot read {path}: {exc}"
        raise ConfigError(msg) from exc
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {path}: {exc}"
        raise ConfigError(msg) from exc

    try:
        config = parse_config(data)
    except ValueError as exc:
        msg = f"Invalid configuration: {exc}"
        raise ConfigError(msg) from exc

    logger.debug("Loaded %s: %d pattern rule(s)", path, len(config.rules))
    return config


def find_config(root: Path) -> Path | None:
    """Return ``<root>/.tagvet.yml`` if it exists."""
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def apply_config(validator: Validator, config: TagvetConfig) -> None:
    """Register the config's rules and flags on *validator*."""
    validator.set_allow_duplicates(config.allow_duplicates)
    validator.recursive = config.recursive
    if config.max_workers is not None:
        validator.max_workers = config.max_workers

    if config.default_rules:
        validator.add_default_rules(*config.tags)

    for rule in config.rules:
        validator.add_rule(
            rule.tag,
            pattern_rule(rule.pattern, forbid=rule.forbid, message=rule.message),
        )
