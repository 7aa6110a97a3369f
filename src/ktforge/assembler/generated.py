"""
Generator output as seen by the assembler.

The upstream generator produces raw text per file; these helpers persist
that dump into the flat output root and derive the names the rest of the
toolchain expects.
"""

import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Build-tool output directories, removed before a fresh build
BUILD_OUTPUT_DIRS = ("build", ".gradle")

# Output directory of program <stem> is <stem>-kotlin
TARGET_DIR_SUFFIX = "-kotlin"


@dataclass
class GeneratedFile:
    """One file emitted by the generator: a root-relative path plus raw text."""

    path: Path
    content: str


def write_generated_files(root: Path, files: Iterable[GeneratedFile]) -> list[Path]:
    """Write generator output under ``root``, overwriting existing files."""
    root = Path(root)
    written = []
    for generated in files:
        target = root / generated.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generated.content, encoding="utf-8")
        written.append(target)
    logger.debug(f"Wrote {len(written)} generated file(s) under {root}")
    return written


def target_base_dir(program_name: str) -> str:
    """Output directory name for a program: ``<stem>-kotlin``."""
    return f"{Path(program_name).stem}{TARGET_DIR_SUFFIX}"


def program_base_name(target_dir: Path) -> str:
    """Inverse of ``target_base_dir``: ``hello-kotlin`` belongs to ``hello``."""
    name = Path(target_dir).resolve().name
    return name[: -len(TARGET_DIR_SUFFIX)] if name.endswith(TARGET_DIR_SUFFIX) else name


def clean_build_outputs(target_dir: Path) -> list[Path]:
    """Delete build-tool output directories under ``target_dir``."""
    removed = []
    for name in BUILD_OUTPUT_DIRS:
        directory = Path(target_dir) / name
        if directory.is_dir():
            shutil.rmtree(directory)
            removed.append(directory)
            logger.info(f"Removed {directory}")
    return removed
