"""Tests for symlink creation and removal with ownership checks."""

import os

import pytest

from src.DCSModManager.errors import ConflictError, OwnershipMismatchError
from src.DCSModManager.models import ModIdentity
from src.DCSModManager.symlinks import SymlinkManager, identity_from_link_target


@pytest.fixture
def symlinks():
    return SymlinkManager()


@pytest.fixture
def hornet_source(hornet_mod):
    return hornet_mod / "Foo" / "Mods" / "aircraft" / "Hornet"


class TestLink:
    def test_creates_absolute_symlink(self, symlinks, hornet_source, install_root):
        target = install_root / "Hornet"

        assert symlinks.link(target, hornet_source) is True
        assert target.is_symlink()
        assert os.readlink(target) == str(hornet_source)
        assert (target / "entry.lua").read_text() == "declare_plugin('Hornet')\n"

    def test_existing_link_is_a_no_op(self, symlinks, hornet_source, install_root):
        target = install_root / "Hornet"
        symlinks.link(target, hornet_source)

        assert symlinks.link(target, hornet_source) is False

    def test_link_to_other_mod_is_a_conflict(self, symlinks, hornet_source, make_mod, install_root):
        other = make_mod("Bar", "2.0", {"Mods/aircraft/Hornet/entry.lua": "bar"})
        target = install_root / "Hornet"
        symlinks.link(target, hornet_source)

        with pytest.raises(ConflictError) as error:
            symlinks.link(target, other / "Bar" / "Mods" / "aircraft" / "Hornet")

        assert error.value.owner == "Foo v1.0.0"
        assert os.readlink(target) == str(hornet_source)

    def test_real_directory_is_a_conflict(self, symlinks, hornet_source, install_root):
        target = install_root / "Hornet"
        target.mkdir()

        with pytest.raises(ConflictError) as error:
            symlinks.link(target, hornet_source)

        assert error.value.owner is None
        assert not target.is_symlink()


class TestUnlink:
    def test_missing_entry_is_a_no_op(self, symlinks, hornet_source, install_root):
        assert symlinks.unlink(install_root / "Hornet", hornet_source) is False

    def test_removes_own_symlink(self, symlinks, hornet_source, install_root):
        target = install_root / "Hornet"
        symlinks.link(target, hornet_source)

        assert symlinks.unlink(target, hornet_source) is True
        assert not os.path.lexists(target)
        assert hornet_source.is_dir()

    def test_foreign_symlink_is_left_untouched(self, symlinks, hornet_source, make_mod, install_root):
        other = make_mod("Bar", "2.0", {"Mods/aircraft/Hornet/entry.lua": "bar"})
        other_source = other / "Bar" / "Mods" / "aircraft" / "Hornet"
        target = install_root / "Hornet"
        symlinks.link(target, other_source)

        with pytest.raises(OwnershipMismatchError) as error:
            symlinks.unlink(target, hornet_source)

        assert error.value.owner == "Bar v2.0"
        assert os.readlink(target) == str(other_source)

    def test_real_file_is_left_untouched(self, symlinks, hornet_source, install_root):
        target = install_root / "Hornet"
        target.write_text("user data")

        with pytest.raises(OwnershipMismatchError):
            symlinks.unlink(target, hornet_source)

        assert target.read_text() == "user data"

    def test_relative_link_is_resolved_against_its_parent(self, symlinks, hornet_source, install_root):
        target = install_root / "Hornet"
        os.symlink(os.path.relpath(hornet_source, install_root), target)

        assert symlinks.points_to(target, hornet_source)
        assert symlinks.unlink(target, hornet_source) is True


class TestOwnerFromTarget:
    def test_reads_version_of_owning_package(self, hornet_source):
        assert identity_from_link_target(hornet_source) == ModIdentity("Foo", "1.0.0")

    def test_prefers_package_root_over_repeated_folder_name(self, make_mod):
        root = make_mod("Foo", "3.1", {"Mods/Mods/thing/file.txt": "x"})

        owner = identity_from_link_target(root / "Foo" / "Mods" / "Mods" / "thing")

        assert owner == ModIdentity("Foo", "3.1")

    def test_unknown_layout_has_no_owner(self, tmp_path):
        assert identity_from_link_target(tmp_path / "a" / "b" / "c") is None
