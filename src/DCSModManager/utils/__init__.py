from .files import find_entry_ignore_case, is_dir_empty, is_filename_valid, to_absolute

__all__ = [
    "find_entry_ignore_case",
    "is_dir_empty",
    "is_filename_valid",
    "to_absolute",
]
