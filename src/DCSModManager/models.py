from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple
from pathlib import Path
import logging

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


README_FILE = "README.txt"
VERSION_FILE = "VERSION.txt"


class MergeMode(Enum):
    ENABLE = "enable"
    DISABLE = "disable"


class EnablementState(Enum):
    DISABLED = "disabled"
    ENABLING = "enabling"
    ENABLED = "enabled"

    @property
    def display_name(self) -> str:
        if self is EnablementState.ENABLING:
            return "Enabling (needs cleanup)"
        return self.name.capitalize()


class LifecycleEvent(Enum):
    ENABLING = "enabling"
    ENABLED = "enabled"
    DISABLING = "disabling"
    DISABLED = "disabled"
    ERROR = "error"


class DepthLevel(Enum):
    LEVEL2 = 2
    LEVEL3 = 3
    LEVEL4_PLUS = 4

    @classmethod
    def from_depth(cls, depth: int) -> "DepthLevel":
        """Classifies a depth counted from the main subtree root (depth 1)."""
        if depth < 2:
            raise ValueError(f"Depth {depth} is outside the payload tree")
        if depth == 2:
            return cls.LEVEL2
        if depth == 3:
            return cls.LEVEL3
        return cls.LEVEL4_PLUS

    @property
    def is_category(self) -> bool:
        return self is not DepthLevel.LEVEL4_PLUS


class EntryAction(Enum):
    """What the merger does with one entry of the main subtree."""
    MANAGED_DIRECTORY = "managed_directory"
    SYMLINK_TARGET = "symlink_target"
    PATCH_TARGET = "patch_target"
    PLAIN_SYMLINK_FILE = "plain_symlink_file"
    IGNORED = "ignored"


class TargetKind(Enum):
    MANAGED_DIRECTORY = "managed_directory"
    SYMLINKED_DIRECTORY = "symlinked_directory"
    PATCHED_FILE = "patched_file"
    SYMLINKED_FILE = "symlinked_file"


@dataclass(frozen=True)
class ModIdentity:
    name: str
    version: Optional[str] = None

    def __str__(self) -> str:
        return self.name if not self.version else f"{self.name} v{self.version}"


@dataclass
class ModPackage:
    root: Path
    name: str
    version: str
    main_subtree: Path

    @property
    def identity(self) -> ModIdentity:
        return ModIdentity(self.name, self.version)


@dataclass
class PatchBlock:
    mod_name: str
    version: str
    payload: str
    start: int
    end: int

    @property
    def identity(self) -> ModIdentity:
        return ModIdentity(self.mod_name, self.version)


@dataclass
class TargetEntry:
    path: Path
    kind: TargetKind
    owners: Tuple[ModIdentity, ...] = field(default_factory=tuple)

    @property
    def owner(self) -> Optional[ModIdentity]:
        return self.owners[0] if len(self.owners) == 1 else None


@dataclass
class Profile:
    name: str
    install_path: Path


@dataclass
class ModEntry:
    name: str
    path: Path
    version: str
    state: EnablementState
    sideloaded: bool = False

    @property
    def enabled(self) -> bool:
        return self.state is EnablementState.ENABLED
