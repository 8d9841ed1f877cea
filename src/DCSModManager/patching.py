"""Reversible patch blocks inside Lua script files.

A block looks like::

    <newline>
    -- This block was added automatically by DCS Mod Manager. DO NOT EDIT! --
    -- {"mod_name": "Foo", "version": "1.0.0"}
    <payload>
    -- This block was added automatically by DCS Mod Manager. DO NOT EDIT! --

The newline in front of the opening marker belongs to the block and nothing
after the closing marker does, so appending a block and cutting the same range
out again leaves the host file byte-for-byte unchanged.
"""
from pathlib import Path
from typing import Iterator, List, Optional, Tuple
import json
import logging

from packaging import version as pkg_version

from .errors import ConflictError, FileOperationError, OwnershipMismatchError, PatchCorruptionError
from .filesystem import FileSystem, default_file_system
from .models import ModIdentity, PatchBlock

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

PATCH_MARKER = "-- This block was added automatically by DCS Mod Manager. DO NOT EDIT! --"
HEADER_PREFIX = "-- "
PATCHABLE_EXTENSIONS = (".lua",)


def is_patchable(name: str) -> bool:
    return Path(name).suffix.lower() in PATCHABLE_EXTENSIONS


def _iter_lines(content: str) -> Iterator[Tuple[int, str]]:
    """Yields (offset, line) pairs, lines split on '\\n' only."""
    offset = 0
    for line in content.split("\n"):
        yield offset, line
        offset += len(line) + 1


def _is_marker(line: str) -> bool:
    return line.strip() == PATCH_MARKER


def _parse_header(line: str) -> Optional[ModIdentity]:
    text = line.strip()
    if not text.startswith("--"):
        return None

    try:
        info = json.loads(text[2:].strip())
    except json.JSONDecodeError:
        return None

    if not isinstance(info, dict):
        return None

    mod_name = info.get("mod_name")
    mod_version = info.get("version")
    if not isinstance(mod_name, str) or not isinstance(mod_version, str) or not mod_name:
        return None

    return ModIdentity(mod_name, mod_version)


def render_header(mod_name: str, version: str) -> str:
    return HEADER_PREFIX + json.dumps({"mod_name": mod_name, "version": version})


def render_block(mod_name: str, version: str, payload: str) -> str:
    lines = [PATCH_MARKER, render_header(mod_name, version)]
    payload = payload.strip()
    if payload:
        lines.append(payload)
    lines.append(PATCH_MARKER)
    return "\n" + "\n".join(lines)


def parse_blocks(content: str, path: Optional[Path] = None) -> List[PatchBlock]:
    """Finds every patch block in `content`.

    Raises PatchCorruptionError on an unclosed block, a missing or malformed
    header, or two blocks owned by the same mod.
    """
    error_path = path if path is not None else Path("<memory>")
    lines = list(_iter_lines(content))
    blocks: List[PatchBlock] = []
    seen = set()

    index = 0
    while index < len(lines):
        offset, line = lines[index]
        if not _is_marker(line):
            index += 1
            continue

        if index + 1 >= len(lines):
            raise PatchCorruptionError(error_path, f"Patch marker on line {index + 1} has no header.")

        identity = _parse_header(lines[index + 1][1])
        if identity is None:
            raise PatchCorruptionError(
                error_path, f"Patch marker on line {index + 1} is not followed by a valid header.")

        close = index + 2
        while close < len(lines) and not _is_marker(lines[close][1]):
            close += 1

        if close >= len(lines):
            raise PatchCorruptionError(
                error_path, f"Patch block opened on line {index + 1} is never closed.", owner=identity.name)

        if identity.name in seen:
            raise PatchCorruptionError(
                error_path, f"More than one patch block for mod \"{identity.name}\".", owner=identity.name)
        seen.add(identity.name)

        start = offset - 1 if offset > 0 and content[offset - 1] == "\n" else offset
        close_offset, close_line = lines[close]
        end = close_offset + len(close_line)

        blocks.append(PatchBlock(
            mod_name=identity.name,
            version=identity.version,
            payload="\n".join(text for _, text in lines[index + 2:close]),
            start=start,
            end=end,
        ))

        index = close + 1

    return blocks


def _describe_version_change(old: str, new: str) -> str:
    try:
        old_version, new_version = pkg_version.parse(old), pkg_version.parse(new)
    except pkg_version.InvalidVersion:
        return "changed"

    if new_version > old_version:
        return "upgraded"
    if new_version < old_version:
        return "downgraded"
    return "refreshed"


class PatchEngine:
    """Applies and removes one patch block per mod inside host files."""

    def __init__(self, fs: Optional[FileSystem] = None) -> None:
        self._fs = fs or default_file_system

    def _read(self, path: Path) -> str:
        try:
            return self._fs.read_text(path)
        except UnicodeDecodeError as error:
            raise PatchCorruptionError(path, "File is not valid UTF-8 text, left unmodified.") from error
        except OSError as error:
            raise FileOperationError(path, f"Could not read file: {error}") from error

    def _write(self, path: Path, content: str) -> None:
        try:
            self._fs.write_text(path, content)
        except OSError as error:
            raise FileOperationError(path, f"Could not write file: {error}") from error

    def read_blocks(self, path: Path) -> List[PatchBlock]:
        if not self._fs.is_file(path):
            return []
        return parse_blocks(self._read(path), path)

    def apply(self, path: Path, mod_name: str, version: str, payload: str) -> bool:
        """Adds or updates the block owned by `mod_name`.

        Returns True when the file was written.
        """
        if self._fs.is_symlink(path):
            raise ConflictError(path, "Refusing to patch a symlinked file owned by another mod.")

        if any(_is_marker(line) for line in payload.strip().split("\n")):
            raise PatchCorruptionError(
                path, f"Payload of mod \"{mod_name}\" contains the patch marker, file left unmodified.",
                owner=mod_name)

        exists = self._fs.lexists(path)
        content = self._read(path) if exists else ""
        blocks = parse_blocks(content, path)
        existing = next((block for block in blocks if block.mod_name == mod_name), None)
        block_text = render_block(mod_name, version, payload)

        if existing is None:
            logger.debug("Adding patch block for %s v%s to %s", mod_name, version, path)
            self._write(path, content + block_text)
            return True

        if existing.version == version and existing.payload == payload.strip():
            logger.debug("Patch block for %s v%s in %s is up to date", mod_name, version, path)
            return False

        if content[existing.start] != "\n":
            # block sits at the very start of the file with no newline to replace
            block_text = block_text[1:]

        logger.info(
            "Patch block for %s in %s %s (%s -> %s)",
            mod_name, path, _describe_version_change(existing.version, version), existing.version, version)
        self._write(path, content[:existing.start] + block_text + content[existing.end:])
        return True

    def remove(self, path: Path, mod_name: str) -> bool:
        """Cuts the block owned by `mod_name` out of `path`.

        Returns True when the file was written. The file is kept even when it
        ends up empty.
        """
        if not self._fs.lexists(path):
            return False

        if self._fs.is_symlink(path):
            raise OwnershipMismatchError(path, "File is a symlink, not a patched file, and was left untouched.")

        content = self._read(path)
        block = next((block for block in parse_blocks(content, path) if block.mod_name == mod_name), None)

        if block is None:
            logger.debug("No patch block for %s in %s", mod_name, path)
            return False

        logger.debug("Removing patch block for %s v%s from %s", mod_name, block.version, path)
        self._write(path, content[:block.start] + content[block.end:])
        return True
