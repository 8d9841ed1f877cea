import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Set, Tuple, Union

from .config import DCSMMConfig
from .errors import (
    ConflictError,
    FileOperationError,
    InstallationRootNotFoundError,
    MergeError,
    ModDeleteError,
    ModManagerError,
    ModNotFoundError,
    ModsDirectoryNotSetError,
    StateError,
    StructureError,
)
from .filesystem import FileSystem, default_file_system
from .merger import DirectoryMerger
from .models import (
    EnablementState,
    LifecycleEvent,
    MergeMode,
    ModEntry,
    ModPackage,
    Profile,
    TargetEntry,
)
from .ownership import inspect_entry
from .state import EnablementMarker
from .utils.files import to_absolute
from .validator import validate

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# callback(event, mod_name, profile_name, detail)
LifecycleListener = Callable[[LifecycleEvent, str, str, Optional[str]], None]
CancelCheck = Optional[Callable[[], bool]]


def required_mods_directory(function: Callable) -> Callable:
    def wrapper(self, *args, **kwargs):
        if not self.config.mods_directory and not self.config.sideload_directory:
            raise ModsDirectoryNotSetError(
                "Mods directory is not set. Please set the mods directory first."
            )
        return function(self, *args, **kwargs)

    return wrapper


class DCSModManager:
    """DCS World Mod Manager

    Enables and disables extracted mod packages in the installation roots of
    the configured profiles.
    """

    # (mod root, profile name) pairs with an enable or disable running in this process
    _active_operations: Set[Tuple[str, str]] = set()
    _operations_lock = threading.Lock()

    def __init__(self, config: DCSMMConfig, file_system: Optional[FileSystem] = None) -> None:
        self._config = config
        self._fs = file_system or default_file_system
        self._merger = DirectoryMerger(self._fs)
        self._listeners: List[LifecycleListener] = []

    @property
    def config(self) -> DCSMMConfig:
        return self._config

    # --- Lifecycle notifications

    def add_listener(self, callback: LifecycleListener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: LifecycleListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _emit(self, event: LifecycleEvent, mod_name: str, profile_name: str, detail: Optional[str] = None) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, mod_name, profile_name, detail)
            except Exception:
                logger.exception("Lifecycle listener failed on %s for %s", event.value, mod_name)

    # --- Helpers

    def _get_profile(self, profile_name: str) -> Profile:
        profile = self._config.get_profile(profile_name)

        if not self._fs.is_dir(profile.install_path):
            logger.error("Installation root of profile %s does not exist: %s", profile_name, profile.install_path)
            raise InstallationRootNotFoundError(profile.install_path)

        return profile

    @contextmanager
    def _operation(self, package: ModPackage, profile_name: str) -> Iterator[None]:
        key = (str(package.root), profile_name)

        with self._operations_lock:
            if key in self._active_operations:
                raise StateError(
                    f"Another operation on mod \"{package.name}\" for profile \"{profile_name}\" is running.")
            self._active_operations.add(key)

        try:
            yield
        finally:
            with self._operations_lock:
                self._active_operations.discard(key)

    def is_operation_running(self, mod_path: Union[str, Path], profile_name: str) -> bool:
        key = (str(to_absolute(Path(mod_path))), profile_name)
        with self._operations_lock:
            return key in self._active_operations

    # --- Enable / disable / status

    def enable(self, mod_path: Union[str, Path], profile_name: str, should_cancel: CancelCheck = None) -> None:
        """Merges a mod into the installation root of a profile.

        A stale ENABLING marker left by an interrupted enable triggers a
        cleanup pass first, whose warnings become the detail of the ENABLED
        event. Enabling an already enabled mod re-runs the merge,
        which writes nothing unless the installation root drifted or the mod
        was updated.
        """
        mod_name = Path(mod_path).name

        try:
            package = validate(mod_path, self._fs)
            profile = self._get_profile(profile_name)

            with self._operation(package, profile.name):
                self._emit(LifecycleEvent.ENABLING, package.name, profile.name)
                warnings = self._enable(package, profile, should_cancel)
        except ModManagerError as error:
            logger.error("Failed to enable %s for profile %s: %s", mod_name, profile_name, error)
            self._emit(LifecycleEvent.ERROR, mod_name, profile_name, str(error))
            raise

        if warnings:
            logger.warning(
                "Mod %s enabled for profile %s, cleanup left %d warnings", package.identity, profile.name, len(warnings))
        else:
            logger.info("Mod %s enabled for profile %s", package.identity, profile.name)

        self._emit(
            LifecycleEvent.ENABLED, package.name, profile.name,
            "\n".join(str(warning) for warning in warnings) or None)

    def _enable(self, package: ModPackage, profile: Profile, should_cancel: CancelCheck) -> List[MergeError]:
        """Returns the warnings of a cleanup pass run for a stale marker."""
        marker = EnablementMarker(package.root, profile.name, self._fs)
        state = marker.status()
        warnings: List[MergeError] = []

        if state is EnablementState.ENABLING:
            logger.warning("Mod %s has a stale enabling marker for profile %s", package.name, profile.name)
            warnings = self._cleanup(package, profile, marker, should_cancel)
            state = EnablementState.DISABLED

        if state is EnablementState.DISABLED:
            marker.begin_enable()
        else:
            logger.info("Mod %s is already enabled for profile %s, verifying", package.name, profile.name)

        # on failure or cancel the ENABLING marker stays for the next call to clean up
        self._merger.merge(
            package.main_subtree, profile.install_path, MergeMode.ENABLE,
            package.name, package.version, should_cancel)

        if state is EnablementState.DISABLED:
            marker.finish_enable()

        return warnings

    def _cleanup(self, package: ModPackage, profile: Profile, marker: EnablementMarker,
                 should_cancel: CancelCheck) -> List[MergeError]:
        marker.begin_disable()
        warnings = self._merger.merge(
            package.main_subtree, profile.install_path, MergeMode.DISABLE,
            package.name, package.version, should_cancel)
        marker.finish_disable()
        return warnings

    def disable(
        self, mod_path: Union[str, Path], profile_name: str, should_cancel: CancelCheck = None
    ) -> List[MergeError]:
        """Removes a mod from the installation root of a profile.

        Removal is best-effort: entries that could not be removed are returned
        as warnings and the mod is marked disabled anyway.
        """
        mod_name = Path(mod_path).name
        warnings: List[MergeError] = []

        try:
            package = validate(mod_path, self._fs)
            profile = self._get_profile(profile_name)

            with self._operation(package, profile.name):
                marker = EnablementMarker(package.root, profile.name, self._fs)

                if marker.status() is EnablementState.DISABLED:
                    logger.info("Mod %s is already disabled for profile %s", package.name, profile.name)
                    return warnings

                self._emit(LifecycleEvent.DISABLING, package.name, profile.name)
                warnings = self._cleanup(package, profile, marker, should_cancel)
        except ModManagerError as error:
            logger.error("Failed to disable %s for profile %s: %s", mod_name, profile_name, error)
            self._emit(LifecycleEvent.ERROR, mod_name, profile_name, str(error))
            raise

        if warnings:
            logger.warning(
                "Mod %s disabled for profile %s with %d warnings", package.name, profile.name, len(warnings))
        else:
            logger.info("Mod %s disabled for profile %s", package.name, profile.name)

        self._emit(
            LifecycleEvent.DISABLED, package.name, profile.name,
            "\n".join(str(warning) for warning in warnings) or None)

        return warnings

    def status(self, mod_path: Union[str, Path], profile_name: str) -> EnablementState:
        """Reads the enablement markers of a mod. ENABLING means a cleanup is pending."""
        self._config.get_profile(profile_name)
        package = validate(mod_path, self._fs)
        return EnablementMarker(package.root, profile_name, self._fs).status()

    # --- Mod discovery

    def _mod_directories(self) -> Iterator[Tuple[Path, bool]]:
        if self._config.mods_directory:
            yield self._config.mods_directory, False
        if self._config.sideload_directory:
            yield self._config.sideload_directory, True

    def is_sideloaded(self, mod_path: Union[str, Path]) -> bool:
        sideload = self._config.sideload_directory
        if not sideload:
            return False
        return to_absolute(Path(mod_path)).parent == to_absolute(sideload)

    @required_mods_directory
    def find_mod(self, mod_name: str) -> Path:
        """Looks a mod up in the mods directory, then in the sideload directory."""
        for directory, _ in self._mod_directories():
            candidate = directory / mod_name
            logger.debug("Searching for mod %s in %s", mod_name, candidate)
            if self._fs.is_dir(candidate):
                return to_absolute(candidate)

        raise ModNotFoundError(mod_name)

    @required_mods_directory
    def get_mods(self, profile_name: str) -> List[ModEntry]:
        mods: List[ModEntry] = []

        for directory, sideloaded in self._mod_directories():
            if not self._fs.is_dir(directory):
                logger.debug("Mods directory %s does not exist", directory)
                continue

            for mod_root in self._fs.list_dir(directory):
                if not self._fs.is_dir(mod_root) or mod_root.name.startswith("."):
                    continue

                try:
                    package = validate(mod_root, self._fs)
                except StructureError as error:
                    logger.warning("Skipping invalid mod %s: %s", mod_root.name, error)
                    continue

                mods.append(ModEntry(
                    name=package.name,
                    path=package.root,
                    version=package.version,
                    state=EnablementMarker(package.root, profile_name, self._fs).status(),
                    sideloaded=sideloaded,
                ))

        logger.debug("Found %d mods for profile %s", len(mods), profile_name)

        return mods

    def get_enabled_mods(self, profile_name: str) -> List[str]:
        return [mod.name for mod in self.get_mods(profile_name) if mod.enabled]

    def delete_mod(self, mod_path: Union[str, Path]) -> List[MergeError]:
        """Disables a mod in every profile, then deletes its directory."""
        root = to_absolute(Path(mod_path))

        if self.is_sideloaded(root):
            raise ModDeleteError(root.name, f"Can not delete sideloaded mod \"{root.name}\".")

        package = validate(root, self._fs)
        warnings: List[MergeError] = []

        for profile in self._config.profiles:
            marker = EnablementMarker(package.root, profile.name, self._fs)
            if marker.status() is not EnablementState.DISABLED:
                logger.info("Disabling %s for profile %s before deleting it", package.name, profile.name)
                warnings.extend(self.disable(package.root, profile.name))

        logger.info("Deleting mod %s at %s", package.name, package.root)
        try:
            self._fs.remove_tree(package.root)
        except OSError as error:
            raise FileOperationError(package.root, f"Could not delete mod: {error}") from error

        return warnings

    # --- Inspection

    def find_conflicts(self, mod_path: Union[str, Path], profile_name: str) -> List[ConflictError]:
        """Lists the paths that would stop this mod from being enabled."""
        package = validate(mod_path, self._fs)
        profile = self._get_profile(profile_name)
        return self._merger.find_conflicts(package.main_subtree, profile.install_path)

    def inspect(self, path: Union[str, Path]) -> Optional[TargetEntry]:
        return inspect_entry(path, self._fs)
