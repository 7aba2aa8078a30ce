"""tagvet - validate struct field tags across Go declaration files."""

from tagvet.errors import TagvetError
from tagvet.extraction import TagRecord
from tagvet.validation import Finding, Validator

__version__ = "0.3.0"

__all__ = [
    "Finding",
    "TagRecord",
    "TagvetError",
    "Validator",
    "__version__",
]
