from pathlib import Path
from typing import Optional, Union
import logging

from .errors import FileOperationError, InvalidProfileNameError, StateError
from .filesystem import FileSystem, default_file_system
from .models import EnablementState
from .utils.files import is_filename_valid

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

ENABLED_MARKER = "ENABLED-{profile}"
ENABLING_MARKER = "ENABLING-{profile}"


class EnablementMarker:
    """Lifecycle of one mod in one profile, stored as marker files in the mod root.

    Every call reads the markers from disk, nothing is cached.
    """

    def __init__(self, mod_root: Union[str, Path], profile_name: str, fs: Optional[FileSystem] = None) -> None:
        if not is_filename_valid(ENABLED_MARKER.format(profile=profile_name)) or not profile_name:
            raise InvalidProfileNameError(profile_name)

        self._mod_root = Path(mod_root)
        self._profile_name = profile_name
        self._fs = fs or default_file_system

    @property
    def enabled_path(self) -> Path:
        return self._mod_root / ENABLED_MARKER.format(profile=self._profile_name)

    @property
    def enabling_path(self) -> Path:
        return self._mod_root / ENABLING_MARKER.format(profile=self._profile_name)

    def status(self) -> EnablementState:
        enabling = self._fs.lexists(self.enabling_path)
        enabled = self._fs.lexists(self.enabled_path)

        if enabling:
            if enabled:
                logger.warning(
                    "Both markers found for profile %s in %s, a cleanup pass is required",
                    self._profile_name, self._mod_root)
            return EnablementState.ENABLING

        if enabled:
            return EnablementState.ENABLED

        return EnablementState.DISABLED

    def begin_enable(self) -> None:
        state = self.status()
        if state is not EnablementState.DISABLED:
            raise StateError(
                f"Can not enable mod in {self._mod_root} for profile \"{self._profile_name}\": "
                f"current state is {state.value}.")

        logger.debug("Writing marker %s", self.enabling_path)
        self._touch(self.enabling_path)

    def finish_enable(self) -> None:
        state = self.status()
        if state is not EnablementState.ENABLING:
            raise StateError(
                f"Can not finish enabling mod in {self._mod_root} for profile \"{self._profile_name}\": "
                f"current state is {state.value}.")

        logger.debug("Renaming marker %s to %s", self.enabling_path, self.enabled_path)
        try:
            self._fs.rename(self.enabling_path, self.enabled_path)
        except OSError as error:
            raise FileOperationError(self.enabling_path, f"Could not write marker: {error}") from error

    def begin_disable(self) -> bool:
        """Checks that the mod can be disabled.

        Returns True when a stale ENABLING marker was found, meaning the pass
        that follows is a forced cleanup rather than a normal disable.
        """
        state = self.status()
        if state is EnablementState.DISABLED:
            raise StateError(
                f"Mod in {self._mod_root} is not enabled for profile \"{self._profile_name}\".")

        if state is EnablementState.ENABLING:
            logger.warning(
                "Found an interrupted enable for profile %s in %s, running a cleanup pass",
                self._profile_name, self._mod_root)
            return True

        return False

    def finish_disable(self) -> None:
        for marker in (self.enabling_path, self.enabled_path):
            if not self._fs.lexists(marker):
                continue
            logger.debug("Removing marker %s", marker)
            try:
                self._fs.remove_file(marker)
            except OSError as error:
                raise FileOperationError(marker, f"Could not remove marker: {error}") from error

    def _touch(self, path: Path) -> None:
        try:
            self._fs.touch(path)
        except OSError as error:
            raise FileOperationError(path, f"Could not write marker: {error}") from error
