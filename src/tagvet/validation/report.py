"""Run a configured check and format its findings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from tagvet.config import TagvetConfig, apply_config
from tagvet.validation.validator import RunReport, Validator

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from rich.console import Console

    from tagvet.extraction.tag import TagRecord


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def check(
    root: Path,
    config: TagvetConfig | None = None,
    *,
    models: Iterable[str] = (),
) -> RunReport:
    """Build a :class:`Validator` from *config* and run it over *root*.

    *models* overrides the config's model filter when non-empty.
    """
    config = config if config is not None else TagvetConfig()
    validator = Validator(root)
    apply_config(validator, config)
    return validator.check(*(tuple(models) or config.models))


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_rich(report: RunReport) -> str:
    """Format a RunReport as human-readable text.

    Example output with findings::

        Rules: 6 registered
        Files: 2 scanned, 12 tags checked

        x duplicate  Customer.db = created_at
          Duplicate tag value created_at in Customer.db

        1 finding (0.0s)
    """
    lines: list[str] = [
        f"Rules: {report.rules_registered} registered",
        f"Files: {report.files_scanned} scanned, {report.tags_checked} tags checked",
        "",
    ]
    elapsed_str = f"{report.elapsed_ms / 1000:.1f}s"

    if not report.findings:
        lines.append(f"✓ No findings ({elapsed_str})")
        return "\n".join(lines)

    for finding in report.findings:
        if finding.struct_name is not None:
            lines.append(
                f"✗ {finding.kind}  {finding.struct_name}.{finding.tag_name}"
                f" = {finding.tag_value}"
            )
        else:
            lines.append(f"✗ {finding.kind}")
        lines.append(f"  {finding.message}")
        lines.append("")

    count = len(report.findings)
    noun = "finding" if count == 1 else "findings"
    lines.append(f"{count} {noun} ({elapsed_str})")
    return "\n".join(lines)


def format_json(report: RunReport) -> str:
    """Format a RunReport as JSON with ``findings`` and ``summary``."""
    output: dict[str, object] = {
        "findings": [
            {
                "kind": f.kind,
                "struct_name": f.struct_name,
                "tag_name": f.tag_name,
                "tag_value": f.tag_value,
                "message": f.message,
            }
            for f in report.findings
        ],
        "summary": {
            "findings_count": len(report.findings),
            "files_scanned": report.files_scanned,
            "tags_checked": report.tags_checked,
            "rules_registered": report.rules_registered,
            "elapsed_ms": report.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


_PORCELAIN_ESCAPES = str.maketrans({"\\": "\\\\", "\t": "\\t", "\n": "\\n"})


def _porcelain_field(text: str | None) -> str:
    return (text or "").translate(_PORCELAIN_ESCAPES)


def format_porcelain(report: RunReport) -> str:
    """One tab-separated ``kind struct tag value message`` line per finding.

    Backslashes, tabs and newlines inside fields are escaped as ``\\\\``,
    ``\\t`` and ``\\n``.  Missing context fields are empty strings.  Returns an
    empty string when there are no findings.
    """
    return "\n".join(
        "\t".join(
            _porcelain_field(field)
            for field in (f.kind, f.struct_name, f.tag_name, f.tag_value, f.message)
        )
        for f in report.findings
    )


def render_tags(tags: list[TagRecord], console: Console) -> None:
    """Print extracted tags as a table, sorted by struct, tag name, and value."""
    from rich.markup import escape
    from rich.table import Table

    if not tags:
        console.print("No tags found.")
        return

    table = Table(title=f"{len(tags)} tag(s)", box=None, padding=(0, 1))
    table.add_column("struct", style="cyan")
    table.add_column("tag", style="bold")
    table.add_column("value")

    for tag in sorted(tags, key=lambda t: (t.struct_name, t.name, t.value)):
        table.add_row(
            escape(tag.struct_name), tag.name, escape(tag.value) or "[dim](empty)[/dim]"
        )

    console.print(table)


def tags_to_dicts(tags: list[TagRecord]) -> list[dict[str, str]]:
    """Sorted plain-dict form of *tags* for JSON output."""
    return [
        {"struct_name": t.struct_name, "name": t.name, "value": t.value}
        for t in sorted(tags, key=lambda t: (t.struct_name, t.name, t.value))
    ]
