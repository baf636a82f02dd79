"""Utility exports for the feedmirror package."""

from .logger import get_logger, set_level
from .now import Now
from .to_int import to_int

__all__ = [
    "Now",
    "get_logger",
    "set_level",
    "to_int",
]
