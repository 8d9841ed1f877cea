from pathlib import Path
from typing import Optional, Union


class ModManagerError(Exception):
    """Base exception for all mod manager errors."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class ModsDirectoryNotSetError(ModManagerError):
    """Raised when neither a mods directory nor a sideload directory is configured."""


class ProfileNotFoundError(ModManagerError):
    """Raised when no profile with the requested name is configured."""

    def __init__(self, profile_name: str) -> None:
        self.profile_name = profile_name
        super().__init__(f"Profile \"{profile_name}\" not found.")


class InvalidProfileNameError(ModManagerError):
    """Raised when a profile name can not be embedded in a marker file name."""

    def __init__(self, profile_name: str) -> None:
        self.profile_name = profile_name
        super().__init__(
            f"Invalid profile name \"{profile_name}\". Check for illegal characters.")


class InstallationRootNotFoundError(ModManagerError):
    """Raised when a profile points to an installation root that does not exist."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        super().__init__(f"Installation root does not exist: {self.path}")


class StateError(ModManagerError):
    """Raised when an operation is requested from an invalid lifecycle state."""


class OperationCanceledError(ModManagerError):
    """Raised when the caller cancels an enable or disable mid-walk."""


class ModError(ModManagerError):
    """Base exception for mod-related errors."""
    default_message = "An error occurred with mod \"{mod_name}\"."

    def __init__(self, mod_name: Optional[str] = None, message: Optional[str] = None) -> None:
        self.mod_name = mod_name
        self.message = self.default_message.format(
            mod_name=mod_name) if not message else message
        super().__init__(self.message)


class ModNotFoundError(ModError):
    """Raised when a mod is not found in the mods or sideload directory."""
    default_message = "Mod \"{mod_name}\" was not found."


class ModDeleteError(ModError):
    """Raised when a mod can not be deleted."""
    default_message = "Mod \"{mod_name}\" can not be deleted."


# --- Package structure

class StructureError(ModManagerError):
    """Raised when a mod package does not have the required shape."""
    default_message = "Invalid mod structure: {path}"

    def __init__(self, path: Union[str, Path], message: Optional[str] = None) -> None:
        self.path = Path(path)
        self.message = message or self.default_message.format(path=self.path)
        super().__init__(self.message)


class MissingReadmeError(StructureError):
    default_message = "README.txt not found in {path}"


class MissingVersionFileError(StructureError):
    default_message = "VERSION.txt not found or empty in {path}"


class MissingMainSubtreeError(StructureError):
    default_message = "Main subdirectory not found: {path}"


class NameMismatchError(StructureError):
    """Raised when the main subdirectory only matches the mod name ignoring case."""

    def __init__(self, path: Union[str, Path], expected: str, found: str) -> None:
        self.expected = expected
        self.found = found
        super().__init__(
            path, f"Main subdirectory \"{found}\" does not match mod name \"{expected}\" in {path}")


# --- Per-path merge errors

class MergeError(ModManagerError):
    """Base exception for errors tied to a single path of the installation root."""
    default_message = "Failed to process \"{path}\"."

    def __init__(
        self,
        path: Union[str, Path],
        message: Optional[str] = None,
        owner: Optional[str] = None,
    ) -> None:
        self.path = Path(path)
        self.owner = owner
        self.message = message or self.default_message.format(path=self.path)
        super().__init__(self.describe())

    def describe(self) -> str:
        details = f"{self.kind}: {self.message} [path: {self.path}"
        if self.owner:
            details += f", owner: {self.owner}"
        return details + "]"


class ConflictError(MergeError):
    """Raised when a target path is occupied by content this mod does not own."""
    default_message = "Target is occupied by content not owned by this mod."


class OwnershipMismatchError(MergeError):
    """Raised when a managed entry belongs to a different mod than expected."""
    default_message = "Entry is not owned by this mod and was left untouched."


class PatchCorruptionError(MergeError):
    """Raised when patch markers in a host file are malformed."""
    default_message = "Malformed patch markers, file left unmodified."


class FileOperationError(MergeError):
    """Raised when a filesystem call fails (permission denied, missing parent, ...)."""
    default_message = "Filesystem operation failed."
