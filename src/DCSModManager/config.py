from typing import Union, Optional, List
from pathlib import Path
from configparser import ConfigParser

from .errors import InvalidProfileNameError, ProfileNotFoundError
from .models import Profile
from .state import ENABLED_MARKER
from .utils.files import is_filename_valid

PROFILE_SECTION_PREFIX = "Profile "


class DCSMMConfig:
    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._config_parser = ConfigParser()

        if not self._config_parser.read(self._path, encoding="UTF-8"):
            self._create_defaults()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def mods_directory(self) -> Optional[Path]:
        """
        Returns the directory extracted mods are downloaded to.
        """
        return self._get_path("mods_path")

    @mods_directory.setter
    def mods_directory(self, value: Union[str, Path]):
        self._set_path("mods_path", value)

    @property
    def sideload_directory(self) -> Optional[Path]:
        """
        Returns the directory holding mods installed by hand.
        """
        return self._get_path("sideload_path")

    @sideload_directory.setter
    def sideload_directory(self, value: Union[str, Path]):
        self._set_path("sideload_path", value)

    @property
    def profiles(self) -> List[Profile]:
        return [
            Profile(
                name=section[len(PROFILE_SECTION_PREFIX):],
                install_path=Path(self._config_parser.get(section, "install_path", fallback="")),
            )
            for section in self._config_parser.sections()
            if section.startswith(PROFILE_SECTION_PREFIX)
        ]

    def get_profile(self, name: str) -> Profile:
        section = PROFILE_SECTION_PREFIX + name
        if not self._config_parser.has_section(section):
            raise ProfileNotFoundError(name)

        return Profile(name=name, install_path=Path(self._config_parser.get(section, "install_path", fallback="")))

    def set_profile(self, name: str, install_path: Union[str, Path]) -> Profile:
        """
        Adds a profile or changes the installation root of an existing one.
        """
        if not name or name != name.strip() or "]" in name or not is_filename_valid(ENABLED_MARKER.format(profile=name)):
            raise InvalidProfileNameError(name)

        section = PROFILE_SECTION_PREFIX + name
        if not self._config_parser.has_section(section):
            self._config_parser.add_section(section)

        self._config_parser.set(section, "install_path", Path(install_path).absolute().as_posix())
        self._save_config()

        return self.get_profile(name)

    def remove_profile(self, name: str) -> None:
        if not self._config_parser.remove_section(PROFILE_SECTION_PREFIX + name):
            raise ProfileNotFoundError(name)
        self._save_config()

    def _get_path(self, key: str) -> Optional[Path]:
        value = self._config_parser.get("General", key, fallback=None) or None
        if value is not None:
            value = Path(value)
        return value

    def _set_path(self, key: str, value: Union[str, Path]):
        if isinstance(value, Path):
            value = value.absolute().as_posix()

        if "General" not in self._config_parser:
            self._config_parser.add_section("General")

        self._config_parser.set("General", key, value)
        self._save_config()

    def _create_defaults(self):
        self._config_parser.read_dict({"General": {
            "mods_path": "",
            "sideload_path": "",
        }})

        self._save_config()

    def _save_config(self):
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open(mode="w", encoding="UTF-8") as file:
            self._config_parser.write(file)
