import logging
from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QObject, Signal

from src.DCSModManager import DCSModManager
from src.DCSModManager.errors import (
    ConflictError,
    InstallationRootNotFoundError,
    ModManagerError,
    OperationCanceledError,
    StateError,
    StructureError,
)
from src.DCSModManager.models import LifecycleEvent

logger = logging.getLogger(__name__)


class BaseWorker(QObject):
    """Runs one enable or disable off the UI thread and reports through signals.

    Move the worker to a QThread and connect `QThread.started` to `run`.
    """
    enabling = Signal(str, str)  # mod name, profile name
    enabled = Signal(str, str)
    disabling = Signal(str, str)
    disabled = Signal(str, str)
    error = Signal(str)
    warnings = Signal(list)  # list of str
    finished = Signal(str)

    def __init__(
        self, mod_manager: DCSModManager, mod_path: Union[str, Path], profile_name: str
    ) -> None:
        super().__init__()
        self._mod_manager = mod_manager
        self._mod_path = Path(mod_path)
        self._profile_name = profile_name
        self._is_canceled = False
        logger.info("%s initialized for %s (%s).", type(self).__name__, self._mod_path.name, profile_name)

    def _on_lifecycle_event(
        self, event: LifecycleEvent, mod_name: str, profile_name: str, detail: Optional[str]
    ) -> None:
        if event is LifecycleEvent.ENABLING:
            self.enabling.emit(mod_name, profile_name)
        elif event is LifecycleEvent.ENABLED:
            if detail:
                # left over by the cleanup of an interrupted enable
                self.warnings.emit(detail.splitlines())
            self.enabled.emit(mod_name, profile_name)
        elif event is LifecycleEvent.DISABLING:
            self.disabling.emit(mod_name, profile_name)
        elif event is LifecycleEvent.DISABLED:
            self.disabled.emit(mod_name, profile_name)

    def is_canceled(self) -> bool:
        return self._is_canceled

    def run(self) -> None:
        self._mod_manager.add_listener(self._on_lifecycle_event)
        try:
            self._run()
        except OperationCanceledError:
            logger.info("%s canceled.", type(self).__name__)
            self.error.emit(self.tr("Operation canceled. Enable the mod again to finish or clean up."))
        except StructureError as error:
            logger.error("Invalid mod structure: %s", error)
            self.error.emit(self.tr("Invalid mod structure: ") + str(error))
        except ConflictError as error:
            logger.error("Conflict: %s", error)
            self.error.emit(self.tr("File conflict: ") + str(error))
        except InstallationRootNotFoundError as error:
            logger.error("Installation root missing: %s", error)
            self.error.emit(self.tr("DCS installation not found: ") + str(error))
        except StateError as error:
            logger.error("Invalid state: %s", error)
            self.error.emit(str(error))
        except ModManagerError as error:
            logger.error("%s failed: %s", type(self).__name__, error)
            self.error.emit(str(error))
        finally:
            self._mod_manager.remove_listener(self._on_lifecycle_event)

    def _run(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        logger.info("%s stop requested.", type(self).__name__)
        self._is_canceled = True


class EnableWorker(BaseWorker):
    def _run(self) -> None:
        logger.info("EnableWorker started.")
        self._mod_manager.enable(self._mod_path, self._profile_name, should_cancel=self.is_canceled)
        logger.info("EnableWorker finished successfully.")
        self.finished.emit(self.tr("Mod enabled successfully."))


class DisableWorker(BaseWorker):
    def _run(self) -> None:
        logger.info("DisableWorker started.")
        warnings = self._mod_manager.disable(self._mod_path, self._profile_name, should_cancel=self.is_canceled)
        if warnings:
            self.warnings.emit([str(warning) for warning in warnings])
        logger.info("DisableWorker finished with %d warnings.", len(warnings))
        self.finished.emit(self.tr("Mod disabled successfully."))
