"""Drivers that execute procedure requests against the local filesystem."""

import os
from collections.abc import Callable
from typing import Any, TypeVar

import aiofiles
import aiofiles.os

from safefs.procedures import (
    AppendFile,
    MakeDirs,
    Procedure,
    ReadFile,
    Remove,
    Rename,
    Request,
    WriteFile,
)

T = TypeVar("T")


def _opener(mode: int | None) -> Callable[[str, int], int] | None:
    """Build an open() opener that gives the file exactly the given permission bits.

    The bits are set on the open descriptor as well, so a file that already
    exists (e.g. a staging file left by an interrupted write) is reset too.
    """
    if mode is None:
        return None

    def opener(path: str, flags: int) -> int:
        fd = os.open(path, flags, mode)
        try:
            if os.chmod in os.supports_fd:
                os.chmod(fd, mode)
            else:
                os.chmod(path, mode)
        except OSError:
            os.close(fd)
            raise
        return fd

    return opener


class SyncDriver:
    """Runs a procedure to completion with blocking calls."""

    def run(self, procedure: Procedure[T]) -> T:
        result: Any = None
        error: Exception | None = None
        while True:
            try:
                if error is not None:
                    request = procedure.throw(error)
                else:
                    request = procedure.send(result)
            except StopIteration as stop:
                return stop.value

            result, error = None, None
            try:
                result = self.execute(request)
            except Exception as e:
                error = e

    def execute(self, request: Request) -> Any:
        if isinstance(request, ReadFile):
            with open(request.path, "rb") as f:
                return f.read()
        if isinstance(request, WriteFile):
            with open(request.path, "wb", opener=_opener(request.mode)) as f:
                f.write(request.data)
            return None
        if isinstance(request, AppendFile):
            with open(request.path, "ab", opener=_opener(request.mode)) as f:
                f.write(request.data)
            return None
        if isinstance(request, Rename):
            os.replace(request.src, request.dst)
            return None
        if isinstance(request, Remove):
            os.remove(request.path)
            return None
        if isinstance(request, MakeDirs):
            os.makedirs(request.path, exist_ok=True)
            return None
        raise TypeError(f"Unknown filesystem request: {request!r}")


class AsyncDriver:
    """Runs a procedure on the event loop, awaiting each request in order."""

    async def run(self, procedure: Procedure[T]) -> T:
        result: Any = None
        error: Exception | None = None
        while True:
            try:
                if error is not None:
                    request = procedure.throw(error)
                else:
                    request = procedure.send(result)
            except StopIteration as stop:
                return stop.value

            result, error = None, None
            try:
                result = await self.execute(request)
            except Exception as e:
                error = e

    async def execute(self, request: Request) -> Any:
        if isinstance(request, ReadFile):
            async with aiofiles.open(request.path, "rb") as f:
                return await f.read()
        if isinstance(request, WriteFile):
            async with aiofiles.open(request.path, "wb", opener=_opener(request.mode)) as f:
                await f.write(request.data)
            return None
        if isinstance(request, AppendFile):
            async with aiofiles.open(request.path, "ab", opener=_opener(request.mode)) as f:
                await f.write(request.data)
            return None
        if isinstance(request, Rename):
            await aiofiles.os.replace(request.src, request.dst)
            return None
        if isinstance(request, Remove):
            await aiofiles.os.remove(request.path)
            return None
        if isinstance(request, MakeDirs):
            await aiofiles.os.makedirs(request.path, exist_ok=True)
            return None
        raise TypeError(f"Unknown filesystem request: {request!r}")
