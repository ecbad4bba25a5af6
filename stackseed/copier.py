from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Collection

from .config import SKIP_NAMES

logger = logging.getLogger(__name__)


class CopyError(RuntimeError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not copy {path}: {reason}")
        self.path = path
        self.reason = reason


def _is_link_cycle(path: Path, source: Path) -> bool:
    if not path.is_symlink():
        return False
    target = os.path.realpath(path)
    ancestor = path.parent
    while True:
        if os.path.realpath(ancestor) == target:
            logger.warning("Skipping symlinked directory %s: it points to one of its ancestors", path)
            return True
        if ancestor == source or ancestor == ancestor.parent:
            return False
        ancestor = ancestor.parent


def copy_tree(source: Path, destination: Path, exclude: Collection[str] = SKIP_NAMES) -> list[Path]:
    """Mirror ``source`` into ``destination``, skipping excluded base names at any depth.

    Symlinked directories are followed and copied as real directories; a link
    that points back at one of its own ancestors is skipped with a warning.
    Returns the copied files relative to ``destination``. The first failure
    aborts the copy; already copied files are left in place.
    """
    if not source.is_dir():
        raise CopyError(source, "source is not a directory")

    copied: list[Path] = []
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise CopyError(destination, str(error)) from error

    def _on_walk_error(error: OSError) -> None:
        raise CopyError(Path(error.filename or source), error.strerror or str(error)) from error

    for current, dirs, files in os.walk(source, onerror=_on_walk_error, followlinks=True):
        current_path = Path(current)
        dirs[:] = sorted(
            name for name in dirs if name not in exclude and not _is_link_cycle(current_path / name, source)
        )
        relative_dir = current_path.relative_to(source)
        target_dir = destination / relative_dir

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise CopyError(target_dir, str(error)) from error

        for name in sorted(files):
            if name in exclude:
                logger.debug("Skipping excluded file %s", relative_dir / name)
                continue
            source_file = current_path / name
            try:
                shutil.copy2(source_file, target_dir / name)
            except OSError as error:
                raise CopyError(source_file, str(error)) from error
            copied.append(relative_dir / name)

    logger.debug("Copied %d file(s) from %s to %s", len(copied), source, destination)
    return copied
