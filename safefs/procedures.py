"""Read, write and append procedures, written once for both call styles.

A procedure is a generator that yields filesystem requests (ReadFile,
WriteFile, ...) and receives each request's result, or has the request's
exception thrown back in at the yield. The procedure owns every branch and
recovery rule; a driver (see drivers.py) only executes requests, either
blocking or awaiting each one in turn.

Safe write, step by step::

    write <path><new_ext>            (creating parent directories if needed)
    rename <path> -> <path><bak_ext> (skipped if <path> does not exist)
    rename <path><new_ext> -> <path>
    remove <path><bak_ext>           (only if the backup was made)

After the first step either the old content (under <path> or <path><bak_ext>)
or the new content (under <path>) is complete on disk. A failure at any step
stops the sequence and nothing already renamed is undone.
"""

import os
from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any, TypeVar

from loguru import logger

from safefs.errors import is_not_found

T = TypeVar("T")


@dataclass(frozen=True)
class ReadFile:
    path: str


@dataclass(frozen=True)
class WriteFile:
    path: str
    data: bytes = field(repr=False)
    mode: int | None = None  # Permission bits applied if the file is created


@dataclass(frozen=True)
class AppendFile:
    path: str
    data: bytes = field(repr=False)
    mode: int | None = None


@dataclass(frozen=True)
class Rename:
    src: str
    dst: str


@dataclass(frozen=True)
class Remove:
    path: str


@dataclass(frozen=True)
class MakeDirs:
    path: str


Request = ReadFile | WriteFile | AppendFile | Rename | Remove | MakeDirs
Procedure = Generator[Request, Any, T]


def _with_parent_dirs(request: WriteFile | AppendFile) -> Procedure[None]:
    """Run a write or append, creating missing parent directories and retrying once."""
    parent = os.path.dirname(request.path)
    try:
        yield request
        return
    except OSError as e:
        if not is_not_found(e) or not parent:
            raise

    logger.debug(f"Parent directory {parent} missing, creating it")
    yield MakeDirs(parent)
    yield request


def write_ensuring_dirs(path: str, data: bytes, mode: int | None = None) -> Procedure[None]:
    """Plain write that creates the parent directory path on demand."""
    yield from _with_parent_dirs(WriteFile(path, data, mode))


def append_ensuring_dirs(path: str, data: bytes, mode: int | None = None) -> Procedure[None]:
    """Append to a file, creating it (and its parent directories) if absent.

    When the directory is missing the whole append is retried once after the
    directories exist, which then creates the file holding exactly data.
    """
    yield from _with_parent_dirs(AppendFile(path, data, mode))


def _rename_if_exists(src: str, dst: str) -> Procedure[bool]:
    try:
        yield Rename(src, dst)
    except OSError as e:
        if not is_not_found(e):
            raise
        return False
    return True


def write_safe(
    path: str,
    data: bytes,
    mode: int | None,
    new_ext: str,
    bak_ext: str,
) -> Procedure[None]:
    """Replace path via a staging file and a temporary backup."""
    new_path = path + new_ext
    bak_path = path + bak_ext

    yield from write_ensuring_dirs(new_path, data, mode)

    backed_up = yield from _rename_if_exists(path, bak_path)
    if backed_up:
        logger.debug(f"Moved previous {path} to {bak_path}")
    else:
        logger.debug(f"No previous {path}, writing without a backup")

    yield Rename(new_path, path)

    if backed_up:
        yield Remove(bak_path)
        logger.debug(f"Removed backup {bak_path}")


def read_plain(path: str) -> Procedure[bytes | None]:
    """Read path, returning None if it does not exist."""
    try:
        return (yield ReadFile(path))
    except OSError as e:
        if is_not_found(e):
            return None
        raise


def read_safe(path: str, bak_ext: str, strict: bool = False) -> Procedure[bytes | None]:
    """Read path, falling back to its backup if the primary file is missing.

    Only a missing primary sends us to the backup; any other primary failure
    is raised. A missing backup means the file does not exist. Any other
    backup failure is also reported as absence unless strict is set.
    """
    try:
        return (yield ReadFile(path))
    except OSError as e:
        if not is_not_found(e):
            raise

    bak_path = path + bak_ext
    try:
        data = yield ReadFile(bak_path)
    except OSError as e:
        if is_not_found(e):
            return None
        if strict:
            raise
        logger.warning(f"Could not read backup {bak_path}, treating {path} as absent: {e}")
        return None

    logger.debug(f"{path} missing, read content from backup {bak_path}")
    return data
