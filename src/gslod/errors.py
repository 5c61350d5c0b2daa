"""
Exception types raised by gslod.

The concrete errors also derive from ValueError, so callers written against plain
argument validation keep working.
"""

from __future__ import annotations


class LODError(Exception):
    """Base class for all LOD construction errors."""


class MissingInputError(LODError, ValueError):
    """Raised when no base primitive set is available (None or empty)."""


class InvalidConfigurationError(LODError, ValueError):
    """Raised when an LODConfig is rejected before any level is built."""


__all__ = ["LODError", "MissingInputError", "InvalidConfigurationError"]
