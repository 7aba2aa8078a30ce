"""tagvet CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import click

from tagvet import __version__

if TYPE_CHECKING:
    from tagvet.config import TagvetConfig


@click.group()
@click.version_option(version=__version__, prog_name="tagvet")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """tagvet - struct tag validator for Go data models."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


_path_argument = click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=False,
)
_tag_option = click.option(
    "--tag",
    "-t",
    "tags",
    multiple=True,
    help="Tag name to check (repeatable; default: all tags).",
)
_model_option = click.option(
    "--model",
    "-m",
    "models",
    multiple=True,
    help="Only scan <model>.go (repeatable, case-insensitive).",
)
_recursive_option = click.option(
    "--recursive", "-r", is_flag=True, help="Scan sub-directories too."
)
_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: <path>/.tagvet.yml if present).",
)


def _resolve_config(
    root: Path,
    config_path: Path | None,
    *,
    tags: tuple[str, ...] = (),
    recursive: bool = False,
    allow_duplicates: bool = False,
) -> TagvetConfig:
    """Load the config file, then apply command-line overrides on top."""
    from tagvet.config import TagvetConfig, find_config, load_config

    config_file = config_path or find_config(root)
    config = load_config(config_file) if config_file is not None else TagvetConfig()

    overrides: dict[str, object] = {}
    if tags:
        overrides["tags"] = tags
    if recursive:
        overrides["recursive"] = recursive
    if allow_duplicates:
        overrides["allow_duplicates"] = allow_duplicates
    if overrides:
        config = replace(config, **overrides)  # type: ignore[arg-type]
    return config


@main.command()
@_path_argument
@_tag_option
@_model_option
@_recursive_option
@click.option(
    "--allow-duplicates",
    is_flag=True,
    help="Skip the duplicate-value check.",
)
@_config_option
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@click.option("--strict", is_flag=True, help="Exit 1 when findings are reported.")
def check(
    *,
    path: Path | None,
    tags: tuple[str, ...],
    models: tuple[str, ...],
    recursive: bool,
    allow_duplicates: bool,
    config_path: Path | None,
    fmt: str | None,
    strict: bool,
) -> None:
    """Validate struct field tags in PATH (default: current directory).

    Exit codes: 0 = clean or findings without --strict,
    1 = findings with --strict, 2 = configuration, scope, or parse error.
    """
    from tagvet.errors import TagvetError
    from tagvet.validation.report import check as run_check
    from tagvet.validation.report import format_json, format_porcelain, format_rich

    root = path or Path.cwd()

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        config = _resolve_config(
            root,
            config_path,
            tags=tags,
            recursive=recursive,
            allow_duplicates=allow_duplicates,
        )
        report = run_check(root, config, models=models)
    except TagvetError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    formatters = {
        "rich": format_rich,
        "json": format_json,
        "porcelain": format_porcelain,
    }
    output = formatters[fmt](report)
    if output:
        click.echo(output)

    if strict and report.findings:
        sys.exit(1)


@main.command("tags")
@_path_argument
@_tag_option
@_model_option
@_recursive_option
@_config_option
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
def tags_cmd(
    *,
    path: Path | None,
    tags: tuple[str, ...],
    models: tuple[str, ...],
    recursive: bool,
    config_path: Path | None,
    as_json: bool,
) -> None:
    """List the struct field tags found in PATH (default: current directory).

    Honours the tags, models, recursive and max_workers settings of the
    config file; --tag, --model and --recursive override them.
    """
    from tagvet.errors import TagvetError
    from tagvet.validation.report import render_tags, tags_to_dicts
    from tagvet.validation.validator import Validator

    root = path or Path.cwd()

    try:
        config = _resolve_config(root, config_path, tags=tags, recursive=recursive)
        validator = Validator(root, recursive=config.recursive, max_workers=config.max_workers)
        found = validator.collect_tags(*(models or config.models), tag_names=config.tags)
    except TagvetError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if as_json:
        click.echo(json.dumps(tags_to_dicts(found), ensure_ascii=False, indent=2))
    else:
        from rich.console import Console

        render_tags(found, Console())
