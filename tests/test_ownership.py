"""Tests for deriving ownership of installation entries."""

from src.DCSModManager.merger import DirectoryMerger
from src.DCSModManager.models import MergeMode, ModIdentity, TargetKind
from src.DCSModManager.ownership import inspect_entry, resolve_owner


def test_missing_path_has_no_entry(install_root):
    assert inspect_entry(install_root / "nothing") is None
    assert resolve_owner(install_root / "nothing") is None


def test_symlinked_directory_owner(hornet_mod, install_root):
    DirectoryMerger().merge(hornet_mod / "Foo", install_root, MergeMode.ENABLE, "Foo", "1.0.0")

    entry = inspect_entry(install_root / "Mods" / "aircraft" / "Hornet")

    assert entry.kind is TargetKind.SYMLINKED_DIRECTORY
    assert entry.owner == ModIdentity("Foo", "1.0.0")


def test_category_directory_has_no_owner(hornet_mod, install_root):
    DirectoryMerger().merge(hornet_mod / "Foo", install_root, MergeMode.ENABLE, "Foo", "1.0.0")

    entry = inspect_entry(install_root / "Mods")

    assert entry.kind is TargetKind.MANAGED_DIRECTORY
    assert entry.owners == ()


def test_patched_file_lists_every_block_owner(make_mod, install_root):
    merger = DirectoryMerger()
    for name, version in (("Foo", "1.0.0"), ("Bar", "0.3")):
        mod = make_mod(name, version, {"Config/Options/options.lua": f"{name.lower()} = true"})
        merger.merge(mod / name, install_root, MergeMode.ENABLE, name, version)
    options = install_root / "Config" / "Options" / "options.lua"

    entry = inspect_entry(options)

    assert entry.kind is TargetKind.PATCHED_FILE
    assert entry.owners == (ModIdentity("Foo", "1.0.0"), ModIdentity("Bar", "0.3"))
    assert resolve_owner(options) is None


def test_single_patch_owner(make_mod, install_root):
    mod = make_mod("Foo", "1.0.0", {"Config/Options/options.lua": "foo = true"})
    DirectoryMerger().merge(mod / "Foo", install_root, MergeMode.ENABLE, "Foo", "1.0.0")

    assert resolve_owner(install_root / "Config" / "Options" / "options.lua") == ModIdentity("Foo", "1.0.0")
