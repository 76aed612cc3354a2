from __future__ import annotations

import errno
import os
from pathlib import Path

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from botanica.config import Settings, StorageBackend
from botanica.services.storage import (
    FileStorage,
    MemoryStorage,
    RedisStorage,
    StorageQuotaExceeded,
    build_storage,
)


@pytest.mark.asyncio
async def test_memory_storage_quota() -> None:
    storage = MemoryStorage(quota_bytes=8)
    await storage.set("k", "1234")

    with pytest.raises(StorageQuotaExceeded):
        await storage.set("k", "123456789")
    assert await storage.get("k") == "1234"


@pytest.mark.asyncio
async def test_file_storage_round_trip(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path / "slots")

    assert await storage.get("plants") is None
    await storage.set("plants", '{"schema_version": 1, "plants": []}')

    assert await storage.get("plants") == '{"schema_version": 1, "plants": []}'
    assert sorted(p.name for p in (tmp_path / "slots").iterdir()) == ["plants.json"]

    await storage.delete("plants")
    await storage.delete("plants")
    assert await storage.get("plants") is None


@pytest.mark.asyncio
async def test_file_storage_maps_disk_full(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    storage = FileStorage(tmp_path)
    await storage.set("plants", "before")

    def full_disk(*_args: object) -> None:
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(os, "replace", full_disk)

    with pytest.raises(StorageQuotaExceeded):
        await storage.set("plants", "after")
    assert await storage.get("plants") == "before"
    assert [p.name for p in tmp_path.iterdir()] == ["plants.json"]


@pytest.mark.asyncio
async def test_file_storage_other_os_errors_propagate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    storage = FileStorage(tmp_path)

    def denied(*_args: object) -> None:
        raise PermissionError(errno.EACCES, "Permission denied")

    monkeypatch.setattr(os, "replace", denied)

    with pytest.raises(PermissionError):
        await storage.set("plants", "value")


@pytest.mark.asyncio
async def test_redis_storage_round_trip(fake_redis) -> None:
    storage = RedisStorage(fake_redis)

    await storage.set("plants", "[]")
    assert await storage.get("plants") == "[]"
    assert await storage.ping() is True

    await storage.delete("plants")
    assert await storage.get("plants") is None

    await storage.aclose()
    assert fake_redis.closed is True


@pytest.mark.asyncio
async def test_redis_oom_maps_to_quota(fake_redis) -> None:
    fake_redis.set_error = ResponseError("OOM command not allowed when used memory > 'maxmemory'.")
    storage = RedisStorage(fake_redis)

    with pytest.raises(StorageQuotaExceeded):
        await storage.set("plants", "[]")


@pytest.mark.asyncio
async def test_redis_ping_failure_is_reported(fake_redis) -> None:
    fake_redis.ping_error = RedisConnectionError("connection refused")

    assert await RedisStorage(fake_redis).ping() is False


def test_build_storage_selects_backend(tmp_path: Path) -> None:
    memory = build_storage(Settings(storage_backend=StorageBackend.memory, storage_quota_bytes=0))
    assert isinstance(memory, MemoryStorage)
    assert memory.quota_bytes is None

    files = build_storage(Settings(storage_backend=StorageBackend.file, storage_dir=tmp_path))
    assert isinstance(files, FileStorage)
    assert files.directory == tmp_path
