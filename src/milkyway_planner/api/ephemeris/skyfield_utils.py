"""
Skyfield Utilities

Shared Skyfield Loader and timescale for the ephemeris adapters.
Kernel files are stored under the configured Skyfield directory
(SKYFIELD_DIR, defaulting to ~/.skyfield).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from skyfield.api import Loader
    from skyfield.timelib import Timescale


logger = logging.getLogger(__name__)

__all__ = [
    "get_skyfield_loader",
    "get_timescale",
]


# Loaders keyed by resolved directory, created lazily on first access
_loaders: dict[Path, Loader] = {}
_timescale: Timescale | None = None


def get_skyfield_loader(directory: Path) -> Loader:
    """
    Get a Skyfield Loader that stores kernels in the given directory.

    One loader is created per directory and reused for later calls.

    Args:
        directory: Directory holding ephemeris kernels

    Returns:
        Configured Loader instance
    """
    resolved = directory.expanduser().resolve()
    loader = _loaders.get(resolved)
    if loader is None:
        from skyfield.api import Loader

        resolved.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Creating Skyfield loader for {resolved}")
        loader = Loader(str(resolved))
        _loaders[resolved] = loader
    return loader


def get_timescale() -> Timescale:
    """
    Get the shared Skyfield timescale.

    Uses the leap-second and Delta T tables bundled with Skyfield, so no
    files are downloaded.
    """
    global _timescale
    if _timescale is None:
        from skyfield.api import load

        _timescale = load.timescale(builtin=True)
    return _timescale
