"""Shared test fixtures for tagvet."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

GO_HEADER = """package models

import (
\t"time"

\t"github.com/gofrs/uuid"
)
"""

# (struct name, db value of CreatedAt, db value of UpdatedAt)
StructSpec = tuple[str, str, str]


def _render_struct(name: str, created_at: str, updated_at: str) -> str:
    return (
        f"\ntype {name} struct {{\n"
        '\tID        uuid.UUID `json:"id" db:"id"`\n'
        f'\tCreatedAt time.Time `json:"created_at" db:"{created_at}"`\n'
        f'\tUpdatedAt time.Time `json:"updated_at" db:"{updated_at}"`\n'
        "}\n"
        "\n"
        "func testFunc() {}\n"
    )


@pytest.fixture()
def models_dir(tmp_path: Path) -> Path:
    """An empty ``models/`` directory."""
    directory = tmp_path / "models"
    directory.mkdir()
    return directory


@pytest.fixture()
def write_models(models_dir: Path) -> Callable[[str, list[StructSpec]], Path]:
    """Return a helper writing a Go file of model structs into ``models_dir``.

    Every struct gets ``ID`` (``db:"id"``), ``CreatedAt`` and ``UpdatedAt``
    fields, each also carrying a ``json`` tag, followed by a ``testFunc``.
    """

    def _write(file_name: str, structs: list[StructSpec]) -> Path:
        path = models_dir / file_name
        body = "".join(_render_struct(*spec) for spec in structs)
        path.write_text(GO_HEADER + body, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def write_go(models_dir: Path) -> Callable[[str, str], Path]:
    """Return a helper writing raw Go source into ``models_dir``."""

    def _write(file_name: str, source: str) -> Path:
        path = models_dir / file_name
        path.write_text(source, encoding="utf-8")
        return path

    return _write
