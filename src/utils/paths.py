from pathlib import Path
from PySide6.QtCore import QCoreApplication, QStandardPaths


class ApplicationPaths:
    MODS_DIR_NAME = "mods"
    LOGS_DIR_NAME = "logs"
    CONFIG_FILE_NAME = "config.ini"
    LOG_FILE_NAME = "DCSModManager-logs.log"

    def __init__(self) -> None:
        # User-specific, writable data path
        self._user_data_path = self._get_user_data_path()

    def _get_user_data_path(self) -> Path:
        """Finds the appropriate writable location for user data."""
        path_str = QStandardPaths.writableLocation(
            QStandardPaths.StandardLocation.AppLocalDataLocation
        )

        if not path_str:
            app_name = QCoreApplication.applicationName()
            if not app_name:
                app_name = "DCSModManager"  # Fallback app name
            path_str = str(Path.home() / f".{app_name}")

        return Path(path_str)

    def create_required_directories(self) -> None:
        for path in (self.user_data_path, self.default_mods_path, self.logs_path):
            path.mkdir(parents=True, exist_ok=True)

    @property
    def user_data_path(self) -> Path:
        """The root directory for user-specific, writable data."""
        return self._user_data_path

    @property
    def config_file(self) -> Path:
        """Path to the user's config.ini holding directories and profiles."""
        return self.user_data_path / self.CONFIG_FILE_NAME

    @property
    def default_mods_path(self) -> Path:
        """Where extracted mods are kept unless the config says otherwise."""
        return self.user_data_path / self.MODS_DIR_NAME

    @property
    def logs_path(self) -> Path:
        return self.user_data_path / self.LOGS_DIR_NAME

    @property
    def log_file(self) -> Path:
        return self.logs_path / self.LOG_FILE_NAME


app_paths = ApplicationPaths()
