from pathlib import Path
from typing import Optional
import logging
import os

from .errors import ConflictError, FileOperationError, OwnershipMismatchError
from .filesystem import FileSystem, default_file_system
from .models import ModIdentity, VERSION_FILE
from .utils.files import to_absolute

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def identity_from_link_target(target: Path, fs: Optional[FileSystem] = None) -> Optional[ModIdentity]:
    """Derives the owning mod from a symlink target.

    Payload lives under `<mod root>/<name>/<name>/...`, so the owner is the
    nearest ancestor whose parent carries the same name.
    """
    fs = fs or default_file_system

    candidates = [
        ancestor for ancestor in reversed(target.parents)
        if ancestor.name and ancestor.name == ancestor.parent.name
    ]
    if not candidates:
        return None

    # prefer a real package root over a payload folder that repeats its parent's name
    for ancestor in candidates:
        version_file = ancestor.parent / VERSION_FILE
        try:
            if fs.is_file(version_file):
                return ModIdentity(ancestor.name, fs.read_text(version_file).strip() or None)
        except (OSError, UnicodeDecodeError):
            logger.debug("Could not read version file %s", version_file)

    return ModIdentity(candidates[0].name)


class SymlinkManager:
    """Creates and removes payload symlinks with ownership checks."""

    def __init__(self, fs: Optional[FileSystem] = None) -> None:
        self._fs = fs or default_file_system

    def link_target(self, path: Path) -> Path:
        """Absolute target of the symlink at `path`."""
        target = self._fs.read_link(path)
        if not target.is_absolute():
            target = path.parent / target
        return Path(os.path.normpath(target))

    def points_to(self, path: Path, target: Path) -> bool:
        if not self._fs.is_symlink(path):
            return False
        return self.link_target(path) == to_absolute(target)

    def owner_of(self, path: Path) -> Optional[ModIdentity]:
        if not self._fs.is_symlink(path):
            return None
        return identity_from_link_target(self.link_target(path), self._fs)

    def link(self, path: Path, target: Path) -> bool:
        """Ensures `path` is a symlink to `target`.

        Returns True when a symlink was created, False when it already existed.
        """
        target = to_absolute(target)

        if not self._fs.lexists(path):
            logger.debug("Creating symlink %s -> %s", path, target)
            try:
                self._fs.symlink(path, target)
            except OSError as error:
                raise FileOperationError(path, f"Could not create symlink: {error}") from error
            return True

        if self._fs.is_symlink(path):
            if self.points_to(path, target):
                logger.debug("Symlink %s already points to %s", path, target)
                return False

            owner = self.owner_of(path)
            raise ConflictError(
                path,
                f"Symlink already points to {self.link_target(path)}",
                owner=str(owner) if owner else None,
            )

        raise ConflictError(path, "A file or directory not managed by any mod already exists here.")

    def unlink(self, path: Path, expected_target: Path) -> bool:
        """Removes the symlink at `path` if it points to `expected_target`.

        Returns True when a symlink was removed, False when nothing was there.
        """
        if not self._fs.lexists(path):
            logger.debug("Nothing to unlink at %s", path)
            return False

        if not self._fs.is_symlink(path):
            raise OwnershipMismatchError(path, "Entry is not a symlink and was left untouched.")

        if not self.points_to(path, expected_target):
            owner = self.owner_of(path)
            raise OwnershipMismatchError(
                path,
                f"Symlink points to {self.link_target(path)} instead of {to_absolute(expected_target)} "
                "and was left untouched.",
                owner=str(owner) if owner else None,
            )

        logger.debug("Removing symlink %s", path)
        try:
            self._fs.remove_symlink(path)
        except OSError as error:
            raise FileOperationError(path, f"Could not remove symlink: {error}") from error

        return True
