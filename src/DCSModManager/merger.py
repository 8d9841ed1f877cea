from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional
import logging

from .errors import ConflictError, FileOperationError, MergeError, OperationCanceledError
from .filesystem import FileSystem, default_file_system
from .models import DepthLevel, EntryAction, MergeMode
from .patching import PatchEngine, is_patchable
from .symlinks import SymlinkManager
from .utils.files import find_entry_ignore_case, is_dir_empty, to_absolute

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# children of the main subtree root
FIRST_DEPTH = 2


def classify(depth: int, is_dir: bool, name: str) -> EntryAction:
    """Decides what happens to a main subtree entry from its depth and type only."""
    level = DepthLevel.from_depth(depth)

    if level.is_category:
        return EntryAction.MANAGED_DIRECTORY if is_dir else EntryAction.IGNORED

    if is_dir:
        return EntryAction.SYMLINK_TARGET

    if is_patchable(name):
        return EntryAction.PATCH_TARGET

    return EntryAction.PLAIN_SYMLINK_FILE


@dataclass
class _MergeContext:
    mode: MergeMode
    mod_name: str
    mod_version: str
    errors: List[MergeError] = field(default_factory=list)


class DirectoryMerger:
    """Walks a mod's main subtree and mirrors it into an installation root.

    Category directories (depth 2 and 3) become real directories shared with
    other mods, everything deeper is linked or patched as a single unit.
    """

    def __init__(
        self,
        fs: Optional[FileSystem] = None,
        symlinks: Optional[SymlinkManager] = None,
        patcher: Optional[PatchEngine] = None,
    ) -> None:
        self._fs = fs or default_file_system
        self._symlinks = symlinks or SymlinkManager(self._fs)
        self._patcher = patcher or PatchEngine(self._fs)

    def merge(
        self,
        main_subtree_root: Path,
        installation_root: Path,
        mode: MergeMode,
        mod_name: str,
        mod_version: str,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> List[MergeError]:
        """Enables or disables one mod in one installation root.

        In ENABLE mode the first error aborts the walk and is raised. In
        DISABLE mode per-entry errors are collected and returned.
        """
        if not self._fs.is_dir(installation_root):
            raise FileOperationError(installation_root, "Installation root does not exist.")

        logger.info("Merging %s v%s into %s (%s)", mod_name, mod_version, installation_root, mode.value)

        context = _MergeContext(mode=mode, mod_name=mod_name, mod_version=mod_version)
        self._merge_directory(
            to_absolute(main_subtree_root), installation_root, FIRST_DEPTH, context, should_cancel)

        if context.errors:
            logger.warning(
                "%d entries of %s could not be removed from %s",
                len(context.errors), mod_name, installation_root)

        return context.errors

    def _merge_directory(
        self,
        source_dir: Path,
        target_dir: Path,
        depth: int,
        context: _MergeContext,
        should_cancel: Optional[Callable[[], bool]],
    ) -> None:
        try:
            sources = self._fs.list_dir(source_dir)
        except OSError as error:
            raise FileOperationError(source_dir, f"Could not list directory: {error}") from error

        for source in sources:
            if should_cancel is not None and should_cancel():
                logger.info("Merge of %s canceled before %s", context.mod_name, source)
                raise OperationCanceledError(f"Operation on mod \"{context.mod_name}\" was canceled.")

            action = classify(depth, self._fs.is_dir(source), source.name)

            if action is EntryAction.IGNORED:
                logger.debug("Ignoring file %s at depth %d", source, depth)
            elif action is EntryAction.MANAGED_DIRECTORY:
                self._merge_category(source, target_dir, depth, context, should_cancel)
            elif action is EntryAction.PATCH_TARGET:
                self._guard(context, self._patch_entry, source, target_dir / source.name, context)
            else:
                self._guard(context, self._link_entry, source, target_dir / source.name, context)

    def _guard(self, context: _MergeContext, function: Callable, *args) -> None:
        try:
            function(*args)
        except MergeError as error:
            if context.mode is MergeMode.ENABLE:
                logger.error("Aborting enable of %s: %s", context.mod_name, error)
                raise
            logger.warning("Could not clean up %s: %s", error.path, error)
            context.errors.append(error)

    def _merge_category(
        self,
        source: Path,
        target_parent: Path,
        depth: int,
        context: _MergeContext,
        should_cancel: Optional[Callable[[], bool]],
    ) -> None:
        target = find_entry_ignore_case(self._fs, target_parent, source.name)

        if context.mode is MergeMode.DISABLE:
            if target is None or not self._fs.is_dir(target):
                return
            self._guard(context, self._merge_directory, source, target, depth + 1, context, should_cancel)
            self._guard(context, self._prune, target)
            return

        if target is None:
            target = target_parent / source.name
            logger.debug("Creating directory %s", target)
            try:
                self._fs.make_dir(target)
            except OSError as error:
                raise FileOperationError(target, f"Could not create directory: {error}") from error
        elif not self._fs.is_dir(target):
            raise ConflictError(target, "A file occupies a category directory path.")

        self._merge_directory(source, target, depth + 1, context, should_cancel)

    def _prune(self, target: Path) -> None:
        try:
            if self._fs.is_symlink(target) or not is_dir_empty(self._fs, target):
                return

            logger.debug("Removing empty directory %s", target)
            self._fs.remove_dir(target)
        except OSError as error:
            raise FileOperationError(target, f"Could not remove empty directory: {error}") from error

    def _link_entry(self, source: Path, target: Path, context: _MergeContext) -> None:
        if context.mode is MergeMode.ENABLE:
            self._symlinks.link(target, source)
        else:
            self._symlinks.unlink(target, source)

    def _patch_entry(self, source: Path, target: Path, context: _MergeContext) -> None:
        if context.mode is MergeMode.DISABLE:
            self._patcher.remove(target, context.mod_name)
            return

        try:
            payload = self._fs.read_text(source)
        except (OSError, UnicodeDecodeError) as error:
            raise FileOperationError(source, f"Could not read patch source: {error}") from error

        self._patcher.apply(target, context.mod_name, context.mod_version, payload)

    # --- Read-only conflict detection

    def find_conflicts(self, main_subtree_root: Path, installation_root: Path) -> List[ConflictError]:
        """Lists every conflict an enable would run into, without touching anything."""
        conflicts: List[ConflictError] = []
        self._scan_directory(to_absolute(main_subtree_root), installation_root, FIRST_DEPTH, conflicts)
        return conflicts

    def _scan_directory(self, source_dir: Path, target_dir: Optional[Path], depth: int,
                        conflicts: List[ConflictError]) -> None:
        for source in self._fs.list_dir(source_dir):
            action = classify(depth, self._fs.is_dir(source), source.name)

            if action is EntryAction.IGNORED:
                continue

            if action is EntryAction.MANAGED_DIRECTORY:
                target = find_entry_ignore_case(self._fs, target_dir, source.name) if target_dir else None
                if target is not None and not self._fs.is_dir(target):
                    conflicts.append(ConflictError(target, "A file occupies a category directory path."))
                    continue
                self._scan_directory(source, target, depth + 1, conflicts)
                continue

            if target_dir is None:
                continue

            target = target_dir / source.name
            if not self._fs.lexists(target):
                continue

            if action is EntryAction.PATCH_TARGET:
                if self._fs.is_symlink(target):
                    owner = self._symlinks.owner_of(target)
                    conflicts.append(ConflictError(
                        target, "Refusing to patch a symlinked file owned by another mod.",
                        owner=str(owner) if owner else None))
                continue

            if self._symlinks.points_to(target, source):
                continue

            owner = self._symlinks.owner_of(target)
            conflicts.append(ConflictError(
                target,
                "Target is occupied by another mod." if owner else
                "A file or directory not managed by any mod already exists here.",
                owner=str(owner) if owner else None,
            ))
