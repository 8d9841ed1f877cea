"""Filesystem calls used by the merge engine.

Every mutation the engine performs on an installation root or a mod root goes
through a :class:`FileSystem` instance, so tests can count writes or inject
failures without patching :mod:`os`.
"""
from pathlib import Path
from typing import List
import logging
import os
import shutil

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class FileSystem:
    # --- Queries

    def lexists(self, path: Path) -> bool:
        return os.path.lexists(path)

    def is_symlink(self, path: Path) -> bool:
        return path.is_symlink()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def list_dir(self, path: Path) -> List[Path]:
        return sorted(path.iterdir(), key=lambda entry: entry.name)

    def read_link(self, path: Path) -> Path:
        return Path(os.readlink(path))

    def read_text(self, path: Path) -> str:
        # bytes in, bytes out: line endings are never translated
        return path.read_bytes().decode("UTF-8")

    # --- Mutations

    def write_text(self, path: Path, content: str) -> None:
        path.write_bytes(content.encode("UTF-8"))

    def touch(self, path: Path) -> None:
        path.write_bytes(b"")

    def symlink(self, path: Path, target: Path) -> None:
        path.symlink_to(target, target_is_directory=target.is_dir())

    def remove_symlink(self, path: Path) -> None:
        # directory symlinks on Windows are removed with rmdir
        if os.name == "nt" and path.is_dir():
            path.rmdir()
        else:
            path.unlink()

    def remove_file(self, path: Path) -> None:
        path.unlink()

    def make_dir(self, path: Path) -> None:
        path.mkdir()

    def remove_dir(self, path: Path) -> None:
        path.rmdir()

    def rename(self, source: Path, destination: Path) -> None:
        os.replace(source, destination)

    def remove_tree(self, path: Path) -> None:
        shutil.rmtree(path)


default_file_system = FileSystem()
