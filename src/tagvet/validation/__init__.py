"""Validation domain — rule registry, default rules, rule engine, run orchestrator."""

from tagvet.validation.engine import DuplicateCache, EngineStats, check_duplicate, evaluate
from tagvet.validation.rules import (
    DEFAULT_RULES,
    Finding,
    Rule,
    RuleRegistry,
    check_charset,
    check_empty,
    check_trailing,
    pattern_rule,
)
from tagvet.validation.validator import RunReport, Validator

__all__ = [
    "DEFAULT_RULES",
    "DuplicateCache",
    "EngineStats",
    "Finding",
    "Rule",
    "RuleRegistry",
    "RunReport",
    "Validator",
    "check_charset",
    "check_duplicate",
    "check_empty",
    "check_trailing",
    "evaluate",
    "pattern_rule",
]
