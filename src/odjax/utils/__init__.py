"""Shared utility functions for odjax."""

from odjax.utils._angle import from_radians, to_radians

__all__ = [
    "from_radians",
    "to_radians",
]
