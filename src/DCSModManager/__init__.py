from .core import DCSModManager
from .config import DCSMMConfig
from .errors import (
    ModManagerError,
    StructureError,
    MergeError,
    ConflictError,
    OwnershipMismatchError,
    PatchCorruptionError,
    FileOperationError,
    StateError,
)
from .models import EnablementState, LifecycleEvent, ModEntry, ModPackage, Profile

__all__ = [
    "DCSModManager",
    "DCSMMConfig",
    "ModManagerError",
    "StructureError",
    "MergeError",
    "ConflictError",
    "OwnershipMismatchError",
    "PatchCorruptionError",
    "FileOperationError",
    "StateError",
    "EnablementState",
    "LifecycleEvent",
    "ModEntry",
    "ModPackage",
    "Profile",
]
