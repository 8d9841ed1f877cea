"""Shared pytest fixtures for DCSModManager tests."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from src.DCSModManager import DCSModManager, DCSMMConfig
from src.DCSModManager.filesystem import FileSystem

# ============================================================================
# Filesystem doubles
# ============================================================================


class RecordingFileSystem(FileSystem):
    """Real filesystem that records every mutating call."""

    def __init__(self) -> None:
        self.writes: List[tuple] = []

    def write_text(self, path: Path, content: str) -> None:
        self.writes.append(("write_text", path))
        super().write_text(path, content)

    def touch(self, path: Path) -> None:
        self.writes.append(("touch", path))
        super().touch(path)

    def symlink(self, path: Path, target: Path) -> None:
        self.writes.append(("symlink", path))
        super().symlink(path, target)

    def remove_symlink(self, path: Path) -> None:
        self.writes.append(("remove_symlink", path))
        super().remove_symlink(path)

    def remove_file(self, path: Path) -> None:
        self.writes.append(("remove_file", path))
        super().remove_file(path)

    def make_dir(self, path: Path) -> None:
        self.writes.append(("make_dir", path))
        super().make_dir(path)

    def remove_dir(self, path: Path) -> None:
        self.writes.append(("remove_dir", path))
        super().remove_dir(path)

    def rename(self, source: Path, destination: Path) -> None:
        self.writes.append(("rename", source))
        super().rename(source, destination)


class CrashingFileSystem(FileSystem):
    """Raises once the given mutating call has run `after` times."""

    def __init__(self, method: str, after: int = 0) -> None:
        self._method = method
        self._remaining = after

    def _maybe_crash(self, method: str) -> None:
        if method != self._method:
            return
        if self._remaining <= 0:
            raise SystemExit(f"simulated crash in {method}")
        self._remaining -= 1

    def rename(self, source: Path, destination: Path) -> None:
        self._maybe_crash("rename")
        super().rename(source, destination)

    def symlink(self, path: Path, target: Path) -> None:
        self._maybe_crash("symlink")
        super().symlink(path, target)


class LockedSymlinkFileSystem(FileSystem):
    """Fails the first symlink removal as if the entry were held open."""

    def __init__(self) -> None:
        self.failed = False

    def remove_symlink(self, path: Path) -> None:
        if not self.failed:
            self.failed = True
            raise PermissionError(f"simulated lock on {path}")
        super().remove_symlink(path)


# ============================================================================
# Mod and installation fixtures
# ============================================================================

ModFactory = Callable[..., Path]


@pytest.fixture
def mods_dir(tmp_path: Path) -> Path:
    path = tmp_path / "mods"
    path.mkdir()
    return path


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """Empty DCS installation root for the "Default" profile."""
    path = tmp_path / "DCS"
    path.mkdir()
    return path


@pytest.fixture
def make_mod(mods_dir: Path) -> ModFactory:
    """Builds a mod package.

    `files` maps paths relative to the main subtree to file contents, or to
    None for an empty directory.
    """

    def factory(
        name: str = "Foo",
        version: str = "1.0.0",
        files: Optional[Dict[str, Optional[str]]] = None,
        parent: Optional[Path] = None,
    ) -> Path:
        root = (parent or mods_dir) / name
        subtree = root / name
        subtree.mkdir(parents=True, exist_ok=True)
        (root / "README.txt").write_text(f"{name} readme\n", encoding="UTF-8")
        (root / "VERSION.txt").write_text(f"{version}\n", encoding="UTF-8")

        for relative, content in (files or {}).items():
            path = subtree / relative
            if content is None:
                path.mkdir(parents=True, exist_ok=True)
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(content.encode("UTF-8"))

        return root

    return factory


@pytest.fixture
def hornet_mod(make_mod: ModFactory) -> Path:
    """Mod Foo v1.0.0 shipping Mods/aircraft/Hornet/."""
    return make_mod("Foo", "1.0.0", {
        "Mods/aircraft/Hornet/entry.lua": "declare_plugin('Hornet')\n",
        "Mods/aircraft/Hornet/Shapes/hornet.edm": "binary",
    })


@pytest.fixture
def config(tmp_path: Path, mods_dir: Path, install_root: Path) -> DCSMMConfig:
    config = DCSMMConfig(tmp_path / "config.ini")
    config.mods_directory = mods_dir
    config.set_profile("Default", install_root)
    return config


@pytest.fixture
def manager(config: DCSMMConfig) -> DCSModManager:
    return DCSModManager(config)


def snapshot(root: Path) -> Dict[str, str]:
    """Describes every entry under `root` without following symlinks."""
    state = {}
    for directory, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            path = Path(directory) / name
            relative = path.relative_to(root).as_posix()
            if path.is_symlink():
                state[relative] = "link:" + os.readlink(path)
            elif path.is_dir():
                state[relative] = "dir"
            else:
                state[relative] = "file:" + path.read_bytes().decode("UTF-8")
    return state
