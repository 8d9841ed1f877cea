from pathlib import Path
from typing import Optional, Union
import logging

from .errors import (
    MissingMainSubtreeError,
    MissingReadmeError,
    MissingVersionFileError,
    NameMismatchError,
    StructureError,
)
from .filesystem import FileSystem, default_file_system
from .models import ModPackage, README_FILE, VERSION_FILE
from .utils.files import to_absolute

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def read_mod_version(mod_root: Path, fs: Optional[FileSystem] = None) -> str:
    fs = fs or default_file_system
    return fs.read_text(mod_root / VERSION_FILE).strip()


def validate(mod_root: Union[str, Path], fs: Optional[FileSystem] = None) -> ModPackage:
    """Checks that `mod_root` is a mod package and describes it.

    A package is a directory holding README.txt, VERSION.txt and a
    subdirectory named exactly like the package directory. Nothing is
    modified.
    """
    fs = fs or default_file_system
    root = to_absolute(Path(mod_root))

    if not fs.is_dir(root):
        raise StructureError(root, f"Mod directory does not exist: {root}")

    name = root.name

    if not fs.is_file(root / README_FILE):
        logger.error("%s is missing from %s", README_FILE, root)
        raise MissingReadmeError(root)

    if not fs.is_file(root / VERSION_FILE):
        logger.error("%s is missing from %s", VERSION_FILE, root)
        raise MissingVersionFileError(root)

    try:
        version = read_mod_version(root, fs)
    except (OSError, UnicodeDecodeError) as error:
        raise MissingVersionFileError(root, f"Could not read {VERSION_FILE} in {root}: {error}") from error

    if not version:
        raise MissingVersionFileError(root)

    main_subtree = root / name
    # on case-insensitive filesystems is_dir() also accepts another casing,
    # so the on-disk name is compared too
    on_disk = _find_main_subtree(fs, root, name)

    if on_disk is None:
        logger.error("Main subdirectory %s not found", main_subtree)
        raise MissingMainSubtreeError(main_subtree)

    if on_disk.name != name:
        logger.error("Main subdirectory %s does not match mod name %s", on_disk.name, name)
        raise NameMismatchError(root, expected=name, found=on_disk.name)

    logger.debug("Validated mod %s v%s at %s", name, version, root)

    return ModPackage(root=root, name=name, version=version, main_subtree=main_subtree)


def _find_main_subtree(fs: FileSystem, root: Path, name: str) -> Optional[Path]:
    candidates = [entry for entry in fs.list_dir(root) if fs.is_dir(entry)]

    for entry in candidates:
        if entry.name == name:
            return entry

    folded = name.casefold()
    for entry in candidates:
        if entry.name.casefold() == folded:
            return entry

    return None
