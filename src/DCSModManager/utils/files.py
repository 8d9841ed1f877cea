from pathlib import Path
from pathlib import PurePath
from typing import Optional
import logging
import os

from ..filesystem import FileSystem

logger = logging.getLogger(__name__)


def is_filename_valid(filename: str) -> bool:
    return bool(filename) and filename not in (".", "..") and PurePath(filename).name == filename


def find_entry_ignore_case(fs: FileSystem, parent: Path, name: str) -> Optional[Path]:
    """Finds a child of `parent` named `name`, ignoring case.

    An exact match wins over a case-insensitive one, so case-sensitive
    filesystems holding both "Mods" and "mods" resolve deterministically.
    """
    if not fs.is_dir(parent):
        return None

    exact = parent / name
    if fs.lexists(exact):
        return exact

    folded = name.casefold()
    for entry in fs.list_dir(parent):
        if entry.name.casefold() == folded:
            return entry

    return None


def is_dir_empty(fs: FileSystem, path: Path) -> bool:
    return not fs.list_dir(path)


def to_absolute(path: Path) -> Path:
    """Absolute, normalized path without resolving symlinks."""
    return Path(os.path.normpath(os.path.abspath(path)))
