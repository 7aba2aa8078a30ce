"""Run orchestrator: sources -> extractors -> fan-in -> rule engine."""

from __future__ import annotations

import logging
import time
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from tagvet.extraction.extractor import extract_tags
from tagvet.extraction.multiplexer import multiplex
from tagvet.extraction.sources import load_sources
from tagvet.extraction.tag import WILDCARD, build_tag_matcher
from tagvet.validation.engine import DuplicateCache, EngineStats, evaluate
from tagvet.validation.rules import Finding, RuleRegistry

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable

    from tagvet.extraction.sources import SourceFile
    from tagvet.extraction.tag import TagRecord
    from tagvet.validation.rules import Rule

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Findings of one run plus the counters the formatters print."""

    findings: list[Finding] = field(default_factory=list)
    files_scanned: int = 0
    tags_checked: int = 0
    rules_registered: int = 0
    elapsed_ms: float = 0.0


class Validator:
    """Validate struct field tags of the Go declarations in a directory.

    Typical use::

        validator = Validator("models")
        validator.add_default_rules("db")
        findings = validator.run()

    The registry may be reused across runs; the duplicate cache is rebuilt
    for every run.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        recursive: bool = False,
        max_workers: int | None = None,
        buffer_size: int | None = None,
    ) -> None:
        if buffer_size is not None and buffer_size < 1:
            msg = f"buffer_size must be at least 1, got {buffer_size}"
            raise ValueError(msg)
        self.path = Path(path)
        self.recursive = recursive
        self.max_workers = max_workers
        self.buffer_size = buffer_size
        self.allow_duplicates = False
        self.registry = RuleRegistry()

    # -- configuration -------------------------------------------------------

    def add_default_rules(self, *tag_names: str) -> None:
        """Register the default rules for each tag name, or for all tags."""
        self.registry.add_defaults(*tag_names)

    def add_rule(self, tag_name: str, rule: Rule) -> None:
        """Register *rule* for *tag_name* (``"*"`` for every tag)."""
        self.registry.add(tag_name, rule)

    def set_allow_duplicates(self, allow_duplicates: bool) -> None:
        """Skip the duplicate-value check when *allow_duplicates* is true."""
        self.allow_duplicates = allow_duplicates

    # -- execution -----------------------------------------------------------

    def _tag_stream(
        self, sources: list[SourceFile], tag_names: Iterable[str]
    ) -> Generator[TagRecord, None, None]:
        matcher = build_tag_matcher(tag_names)
        return multiplex(
            [extract_tags(source, matcher) for source in sources],
            buffer_size=self.buffer_size,
            max_workers=self.max_workers,
        )

    def check(self, *models: str) -> RunReport:
        """Run a validation pass and return findings with run counters.

        Raises
        ------
        ScopeError
            When no declaration file is in scope.
        SourceParseError
            When a declaration file fails to parse.
        """
        start = time.monotonic()
        sources = load_sources(self.path, models, recursive=self.recursive)
        report = RunReport(files_scanned=len(sources), rules_registered=len(self.registry))

        if self.registry:
            stats = EngineStats()
            with closing(self._tag_stream(sources, self.registry.tag_names())) as stream:
                report.findings = evaluate(
                    stream,
                    self.registry,
                    DuplicateCache(),
                    allow_duplicates=self.allow_duplicates,
                    stats=stats,
                )
            report.tags_checked = stats.tags_checked
        else:
            report.findings = evaluate((), self.registry, DuplicateCache())

        report.elapsed_ms = (time.monotonic() - start) * 1000
        logger.info(
            "Validated %d tag(s) in %d file(s): %d finding(s)",
            report.tags_checked,
            report.files_scanned,
            len(report.findings),
        )
        return report

    def run(self, *models: str) -> list[Finding]:
        """Validate the tags of every struct in scope.

        *models* restricts scanning to files named ``<model>.go``.  Returns
        every finding; an empty list means validation passed.
        """
        return self.check(*models).findings

    def collect_tags(self, *models: str, tag_names: Iterable[str] = ()) -> list[TagRecord]:
        """Extract tags without validating them.

        Uses *tag_names* when given, else the registered tag names, else
        every tag.
        """
        names = list(tag_names) or self.registry.tag_names() or [WILDCARD]
        sources = load_sources(self.path, models, recursive=self.recursive)
        with closing(self._tag_stream(sources, names)) as stream:
            return list(stream)
