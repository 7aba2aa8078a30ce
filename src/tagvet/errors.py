"""Exception hierarchy shared across tagvet."""

from __future__ import annotations


class TagvetError(Exception):
    """Base class for errors that abort a run."""
