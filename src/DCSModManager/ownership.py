"""Derives who owns an entry of an installation root.

Nothing is stored in a separate index: a symlink's target and a patched file's
block headers are the only sources of truth.
"""
from pathlib import Path
from typing import Optional, Union
import logging

from .filesystem import FileSystem, default_file_system
from .models import ModIdentity, TargetEntry, TargetKind
from .patching import PatchEngine
from .symlinks import SymlinkManager

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def inspect_entry(path: Union[str, Path], fs: Optional[FileSystem] = None) -> Optional[TargetEntry]:
    """Classifies `path` and lists its owners, or returns None if it does not exist.

    Raises PatchCorruptionError for a file with malformed patch markers.
    """
    fs = fs or default_file_system
    path = Path(path)

    if not fs.lexists(path):
        return None

    if fs.is_symlink(path):
        symlinks = SymlinkManager(fs)
        owner = symlinks.owner_of(path)
        kind = TargetKind.SYMLINKED_DIRECTORY if fs.is_dir(path) else TargetKind.SYMLINKED_FILE
        return TargetEntry(path, kind, (owner,) if owner else ())

    if fs.is_dir(path):
        return TargetEntry(path, TargetKind.MANAGED_DIRECTORY)

    blocks = PatchEngine(fs).read_blocks(path)
    return TargetEntry(path, TargetKind.PATCHED_FILE, tuple(block.identity for block in blocks))


def resolve_owner(path: Union[str, Path], fs: Optional[FileSystem] = None) -> Optional[ModIdentity]:
    """Returns the single mod owning `path`, or None.

    A file patched by several mods has no single owner.
    """
    entry = inspect_entry(path, fs)
    if entry is None:
        return None
    return entry.owner
