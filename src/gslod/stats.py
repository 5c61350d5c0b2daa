"""
Splat and memory statistics for loaded scenes.

LODStats is an explicit accumulator: loaders and reporting calls receive it as
an argument instead of updating module-level state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

_BYTE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_bytes(num_bytes: int) -> str:
    """
    Format a byte count for humans.

    Example:
        >>> format_bytes(1536)
        '1.5 KB'
    """
    if num_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while exponent < len(_BYTE_UNITS) - 1 and num_bytes >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(num_bytes / 1024**exponent, 2)
    return f"{value:g} {_BYTE_UNITS[exponent]}"


@dataclass
class LODStats:
    """
    Running totals over the scenes a caller has loaded.

    Attributes:
        scenes: Mapping of scene name to (splat count, bytes)
    """

    scenes: dict[str, tuple[int, int]] = field(default_factory=dict)

    @property
    def scenes_loaded(self) -> int:
        return len(self.scenes)

    @property
    def total_splats(self) -> int:
        return sum(count for count, _ in self.scenes.values())

    @property
    def total_bytes(self) -> int:
        return sum(nbytes for _, nbytes in self.scenes.values())

    def record(self, name: str, splat_count: int, nbytes: int) -> None:
        """Add (or replace) a scene's totals."""
        self.scenes[name] = (int(splat_count), int(nbytes))
        logger.debug("[Stats] Recorded %s: %d splats, %s", name, splat_count, format_bytes(nbytes))

    def release(self, names: list[str] | None = None) -> None:
        """Forget the given scenes (all scenes if None)."""
        if names is None:
            names = list(self.scenes)
        for name in names:
            self.scenes.pop(name, None)
        logger.info("[Stats] Released scenes, %d remaining", self.scenes_loaded)

    def summary(self) -> dict[str, Any]:
        """JSON-ready summary of the accumulated totals."""
        return {
            "scenes_loaded": self.scenes_loaded,
            "total_splats": self.total_splats,
            "total_bytes": self.total_bytes,
            "total_memory": format_bytes(self.total_bytes),
            "scenes": list(self.scenes),
        }


__all__ = ["LODStats", "format_bytes"]
