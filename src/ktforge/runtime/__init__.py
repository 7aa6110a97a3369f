"""
Runtime support library for generated Kotlin programs.

The library itself is Kotlin source (``DafnyRuntime.kt``) shipped as package
data. This module only knows where to find it: the copy installed next to
this file comes first, and callers may inject further search paths.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

RUNTIME_FILENAME = "DafnyRuntime.kt"

# Where the runtime lands inside the Kotlin source tree
RUNTIME_INSTALL_PATH = Path("dafny") / RUNTIME_FILENAME


def packaged_runtime_path() -> Path:
    """Path of the runtime file installed with ktforge."""
    return Path(__file__).resolve().parent / RUNTIME_FILENAME


def default_search_paths() -> list[Path]:
    return [packaged_runtime_path()]


def locate_runtime(search_paths: Iterable[Path]) -> Path | None:
    """Return the first search path that is an existing file, or None."""
    for candidate in search_paths:
        candidate = Path(candidate)
        if candidate.is_file():
            logger.debug(f"Runtime support library found at {candidate}")
            return candidate
        logger.debug(f"No runtime support library at {candidate}")
    return None
