"""Read, write and append with blocking and asyncio call styles."""

import os
from collections.abc import Mapping
from typing import Any

from safefs.codec import (
    ReturnAs,
    decode_content,
    normalize_data_to_write,
    normalize_return_as,
    to_bytes,
)
from safefs.config import Settings
from safefs.drivers import AsyncDriver, SyncDriver
from safefs.options import AppendOptions, ReadOptions, WriteOptions, coerce_options
from safefs.procedures import (
    Procedure,
    append_ensuring_dirs,
    read_plain,
    read_safe,
    write_ensuring_dirs,
    write_safe,
)

PathLike = str | os.PathLike[str]


def _as_str(path: PathLike) -> str:
    return os.fsdecode(os.fspath(path))


class FileOps:
    """
    Safe file primitives bound to one set of settings.

    Every method exists twice, e.g. write() and write_async(). Both build the
    same procedure and differ only in the driver that runs it.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self._sync = SyncDriver()
        self._async = AsyncDriver()

    # ------------------------------------------------------------------
    # Procedure builders
    # ------------------------------------------------------------------

    def _read_procedure(
        self, path: str, options: ReadOptions | Mapping[str, Any] | None
    ) -> Procedure[bytes | None]:
        opts = coerce_options(ReadOptions, options)
        if opts.safe:
            return read_safe(path, self.settings.bak_ext, strict=self.settings.strict_backup_read)
        return read_plain(path)

    def _write_procedure(
        self, path: str, data: Any, options: WriteOptions | Mapping[str, Any] | None
    ) -> Procedure[None]:
        opts = coerce_options(WriteOptions, options)
        payload = normalize_data_to_write(data, opts.json_indent)
        mode = opts.mode if opts.mode is not None else self.settings.default_mode
        if opts.safe:
            return write_safe(path, payload, mode, self.settings.new_ext, self.settings.bak_ext)
        return write_ensuring_dirs(path, payload, mode)

    def _append_procedure(
        self, path: str, data: Any, options: AppendOptions | Mapping[str, Any] | None
    ) -> Procedure[None]:
        opts = coerce_options(AppendOptions, options)
        payload = to_bytes(data, opts.encoding)
        mode = opts.mode if opts.mode is not None else self.settings.default_mode
        return append_ensuring_dirs(path, payload, mode)

    # ------------------------------------------------------------------
    # Blocking
    # ------------------------------------------------------------------

    def read(
        self,
        path: PathLike,
        return_as: ReturnAs | str | None = ReturnAs.UTF8,
        options: ReadOptions | Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Read a file.

        Args:
            path: File to read.
            return_as: utf8 (str), buf (bytes), json or jsonWithDates.
                Unrecognized values fall back to utf8.
            options: ReadOptions or a mapping, e.g. {"safe": True}.

        Returns:
            The decoded content, or None if the file does not exist.
        """
        path = _as_str(path)
        mode = normalize_return_as(return_as)
        data = self._sync.run(self._read_procedure(path, options))
        return decode_content(data, mode, path=path)

    def write(
        self,
        path: PathLike,
        data: Any,
        options: WriteOptions | Mapping[str, Any] | None = None,
    ) -> None:
        """
        Write a file, replacing any previous content.

        Args:
            path: File to write. Missing parent directories are created.
            data: str, bytes, or a dict/list serialized to JSON.
            options: WriteOptions or a mapping with safe, mode, jsonIndent.
        """
        path = _as_str(path)
        self._sync.run(self._write_procedure(path, data, options))

    def append(
        self,
        path: PathLike,
        data: str | bytes,
        options: AppendOptions | Mapping[str, Any] | None = None,
    ) -> None:
        """Append to a file, creating it and its parent directories if needed."""
        path = _as_str(path)
        self._sync.run(self._append_procedure(path, data, options))

    # ------------------------------------------------------------------
    # asyncio
    # ------------------------------------------------------------------

    async def read_async(
        self,
        path: PathLike,
        return_as: ReturnAs | str | None = ReturnAs.UTF8,
        options: ReadOptions | Mapping[str, Any] | None = None,
    ) -> Any:
        """Async variant of read()."""
        path = _as_str(path)
        mode = normalize_return_as(return_as)
        data = await self._async.run(self._read_procedure(path, options))
        return decode_content(data, mode, path=path)

    async def write_async(
        self,
        path: PathLike,
        data: Any,
        options: WriteOptions | Mapping[str, Any] | None = None,
    ) -> None:
        """Async variant of write()."""
        path = _as_str(path)
        await self._async.run(self._write_procedure(path, data, options))

    async def append_async(
        self,
        path: PathLike,
        data: str | bytes,
        options: AppendOptions | Mapping[str, Any] | None = None,
    ) -> None:
        """Async variant of append()."""
        path = _as_str(path)
        await self._async.run(self._append_procedure(path, data, options))
