"""Tests for the asyncio read/write/append API."""

import asyncio
import os
import stat
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

import safefs
from safefs import FileOps, Settings
from safefs.errors import DecodeError


@pytest.fixture
def ops() -> FileOps:
    return FileOps(Settings())


def _names(directory: Path) -> list[str]:
    return sorted(p.name for p in directory.iterdir())


@pytest.mark.asyncio
async def test_write_then_read(ops: FileOps, tmp_path: Path) -> None:
    """Test write then read."""
    target = tmp_path / "file.txt"
    await ops.write_async(target, "abc")
    assert await ops.read_async(target) == "abc"
    assert _names(tmp_path) == ["file.txt"]


@pytest.mark.asyncio
async def test_write_creates_parent_directories(ops: FileOps, tmp_path: Path) -> None:
    """Test write creates parent directories."""
    target = tmp_path / "a" / "b" / "c.json"
    await ops.write_async(target, {"a": 1}, {"jsonIndent": 2})
    assert target.read_text(encoding="utf-8") == '{\n  "a": 1\n}'
    assert await ops.read_async(target, "json") == {"a": 1}


@pytest.mark.asyncio
async def test_read_missing_is_none(ops: FileOps, tmp_path: Path) -> None:
    """Test a missing file reads as None."""
    assert await ops.read_async(tmp_path / "nope.txt") is None
    assert await ops.read_async(tmp_path / "nope.txt", "jsonWithDates") is None


@pytest.mark.asyncio
async def test_read_buf(ops: FileOps, tmp_path: Path) -> None:
    """Test read buf."""
    target = tmp_path / "blob.bin"
    await ops.write_async(target, bytearray(b"\x00\xff"))
    assert await ops.read_async(target, "buf") == b"\x00\xff"


@pytest.mark.asyncio
async def test_read_invalid_json_raises(ops: FileOps, tmp_path: Path) -> None:
    """Test read invalid json raises."""
    target = tmp_path / "bad.json"
    target.write_text("[1,", encoding="utf-8")
    with pytest.raises(DecodeError):
        await ops.read_async(target, "json")


@pytest.mark.asyncio
async def test_read_directory_raises(ops: FileOps, tmp_path: Path) -> None:
    """Test read directory raises."""
    with pytest.raises(OSError):
        await ops.read_async(tmp_path)


@pytest.mark.asyncio
async def test_safe_write_replaces_existing(ops: FileOps, tmp_path: Path) -> None:
    """Test safe write replaces existing."""
    target = tmp_path / "file.txt"
    target.write_text("old", encoding="utf-8")
    await ops.write_async(target, "abc", {"safe": True})
    assert target.read_text(encoding="utf-8") == "abc"
    assert _names(tmp_path) == ["file.txt"]


@pytest.mark.asyncio
async def test_safe_write_new_path(ops: FileOps, tmp_path: Path) -> None:
    """Test safe write new path."""
    target = tmp_path / "dir" / "file.txt"
    await ops.write_async(target, "abc", {"safe": True})
    assert target.read_text(encoding="utf-8") == "abc"
    assert _names(tmp_path / "dir") == ["file.txt"]


@pytest.mark.asyncio
async def test_safe_write_twice(ops: FileOps, tmp_path: Path) -> None:
    """Test safe write twice."""
    target = tmp_path / "file.txt"
    for _ in range(2):
        await ops.write_async(target, "same", {"safe": True})
        assert _names(tmp_path) == ["file.txt"]
    assert target.read_text(encoding="utf-8") == "same"


@pytest.mark.asyncio
async def test_safe_write_backup_removal_failure(ops: FileOps, tmp_path: Path) -> None:
    """Test safe write backup removal failure."""
    target = tmp_path / "file.txt"
    target.write_text("old", encoding="utf-8")

    failing_remove = AsyncMock(side_effect=PermissionError("denied"))
    with patch("safefs.drivers.aiofiles.os.remove", failing_remove):
        with pytest.raises(PermissionError):
            await ops.write_async(target, "new", {"safe": True})

    failing_remove.assert_awaited_once_with(str(target) + ".__bak__")
    assert target.read_text(encoding="utf-8") == "new"
    assert (tmp_path / "file.txt.__bak__").read_text(encoding="utf-8") == "old"


@pytest.mark.asyncio
async def test_safe_read_falls_back_to_backup(ops: FileOps, tmp_path: Path) -> None:
    """Test safe read falls back to backup."""
    (tmp_path / "file.txt.__bak__").write_text("xyz", encoding="utf-8")
    assert await ops.read_async(tmp_path / "file.txt", "utf8", {"safe": True}) == "xyz"
    assert await ops.read_async(tmp_path / "file.txt") is None


@pytest.mark.asyncio
async def test_safe_read_prefers_primary(ops: FileOps, tmp_path: Path) -> None:
    """Test safe read prefers primary."""
    (tmp_path / "file.txt").write_text("abc", encoding="utf-8")
    (tmp_path / "file.txt.__bak__").write_text("xyz", encoding="utf-8")
    assert await ops.read_async(tmp_path / "file.txt", "utf8", {"safe": True}) == "abc"


@pytest.mark.asyncio
async def test_append(ops: FileOps, tmp_path: Path) -> None:
    """Test appending to a file."""
    target = tmp_path / "file.txt"
    target.write_text("abc", encoding="utf-8")
    await ops.append_async(target, "def")
    assert target.read_text(encoding="utf-8") == "abcdef"


@pytest.mark.asyncio
async def test_append_creates_missing_directories(ops: FileOps, tmp_path: Path) -> None:
    """Test append creates missing directories."""
    target = tmp_path / "a" / "b" / "file.txt"
    await ops.append_async(target, "def")
    assert target.read_text(encoding="utf-8") == "def"


@pytest.mark.asyncio
async def test_append_directory_creation_failure(ops: FileOps, tmp_path: Path) -> None:
    """Test append directory creation failure."""
    target = tmp_path / "a" / "file.txt"
    failing_makedirs = AsyncMock(side_effect=PermissionError("denied"))
    with patch("safefs.drivers.aiofiles.os.makedirs", failing_makedirs):
        with pytest.raises(PermissionError):
            await ops.append_async(target, "def")
    assert not (tmp_path / "a").exists()


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
@pytest.mark.asyncio
async def test_modes(ops: FileOps, tmp_path: Path) -> None:
    """Test permission bits on every async write path."""
    direct = tmp_path / "direct.txt"
    nested = tmp_path / "nested" / "file.txt"
    appended = tmp_path / "logs" / "file.log"

    await ops.write_async(direct, "abc", {"mode": 0o600})
    await ops.write_async(nested, "abc", {"mode": 0o600, "safe": True})
    await ops.append_async(appended, "abc", {"mode": 0o600})

    for path in (direct, nested, appended):
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
@pytest.mark.asyncio
async def test_mode_resets_leftover_staging_file(ops: FileOps, tmp_path: Path) -> None:
    """Test a staging file left by a crash does not keep its old permissions."""
    target = tmp_path / "secret.txt"
    staging = tmp_path / "secret.txt.__new__"
    staging.write_text("partial", encoding="utf-8")
    staging.chmod(0o644)

    await ops.write_async(target, "abc", {"safe": True, "mode": 0o600})

    assert await ops.read_async(target) == "abc"
    assert stat.S_IMODE(target.stat().st_mode) == 0o600
    assert not staging.exists()


@pytest.mark.asyncio
async def test_calls_on_different_paths_run_concurrently(ops: FileOps, tmp_path: Path) -> None:
    """Test calls on different paths run concurrently."""
    paths = [tmp_path / f"file{i}.json" for i in range(5)]
    await asyncio.gather(
        *(ops.write_async(p, {"i": i}, {"safe": True}) for i, p in enumerate(paths))
    )
    results = await asyncio.gather(*(ops.read_async(p, "json") for p in paths))
    assert results == [{"i": i} for i in range(5)]
    assert _names(tmp_path) == sorted(p.name for p in paths)


@pytest.mark.asyncio
async def test_module_level_api(tmp_path: Path) -> None:
    """Test the module-level functions."""
    target = tmp_path / "file.txt"
    await safefs.write_async(target, "abc", {"safe": True})
    await safefs.append_async(target, "def")
    assert await safefs.read_async(target, "utf8", {"safe": True}) == "abcdef"
