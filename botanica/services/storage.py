"""Key-value slot backends the plant store persists into."""

from __future__ import annotations

import asyncio
import contextlib
import errno
import os
import tempfile
from pathlib import Path
from typing import Protocol

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError, ResponseError

from botanica.config import Settings, StorageBackend

_logger = structlog.get_logger("botanica.storage")

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class StorageQuotaExceeded(RuntimeError):
	"""Raised when the backend has no room for the value being written."""


class KeyValueStorage(Protocol):
	async def get(self, key: str) -> str | None: ...

	async def set(self, key: str, value: str) -> None: ...

	async def delete(self, key: str) -> None: ...

	async def ping(self) -> bool: ...

	async def aclose(self) -> None: ...


def _check_quota(key: str, value: str, quota_bytes: int | None) -> None:
	if quota_bytes is None:
		return
	size = len(value.encode("utf-8"))
	if size > quota_bytes:
		raise StorageQuotaExceeded(f"value for {key!r} needs {size} bytes, quota is {quota_bytes}")


class MemoryStorage:
	"""Process-local slot map, used in tests and ephemeral deployments."""

	def __init__(self, quota_bytes: int | None = None):
		self.quota_bytes = quota_bytes
		self._values: dict[str, str] = {}

	async def get(self, key: str) -> str | None:
		return self._values.get(key)

	async def set(self, key: str, value: str) -> None:
		_check_quota(key, value, self.quota_bytes)
		self._values[key] = value

	async def delete(self, key: str) -> None:
		self._values.pop(key, None)

	async def ping(self) -> bool:
		return True

	async def aclose(self) -> None:
		return None


class FileStorage:
	"""One UTF-8 file per key; every write is a temp file plus atomic replace."""

	def __init__(self, directory: Path, quota_bytes: int | None = None):
		self.directory = Path(directory)
		self.quota_bytes = quota_bytes

	def _path(self, key: str) -> Path:
		return self.directory / f"{key}.json"

	async def get(self, key: str) -> str | None:
		return await asyncio.to_thread(self._read, key)

	async def set(self, key: str, value: str) -> None:
		_check_quota(key, value, self.quota_bytes)
		await asyncio.to_thread(self._write, key, value)

	async def delete(self, key: str) -> None:
		await asyncio.to_thread(self._path(key).unlink, True)

	async def ping(self) -> bool:
		try:
			self.directory.mkdir(parents=True, exist_ok=True)
		except OSError:
			return False
		return os.access(self.directory, os.W_OK)

	async def aclose(self) -> None:
		return None

	def _read(self, key: str) -> str | None:
		path = self._path(key)
		if not path.exists():
			return None
		return path.read_text(encoding="utf-8")

	def _write(self, key: str, value: str) -> None:
		path = self._path(key)
		tmp_path: str | None = None
		try:
			self.directory.mkdir(parents=True, exist_ok=True)
			fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
			with os.fdopen(fd, "w", encoding="utf-8") as handle:
				handle.write(value)
				handle.flush()
				os.fsync(handle.fileno())
			os.replace(tmp_path, path)
			tmp_path = None
		except OSError as exc:
			if exc.errno in _QUOTA_ERRNOS:
				raise StorageQuotaExceeded(f"no space left to write {key!r}") from exc
			raise
		finally:
			if tmp_path is not None:
				with contextlib.suppress(OSError):
					os.unlink(tmp_path)


class RedisStorage:
	"""Slot map on a Redis instance; ``maxmemory`` refusals surface as quota errors."""

	def __init__(self, client: Redis, quota_bytes: int | None = None):
		self.client = client
		self.quota_bytes = quota_bytes

	@classmethod
	def from_url(cls, url: str, quota_bytes: int | None = None) -> RedisStorage:
		return cls(Redis.from_url(url, decode_responses=True), quota_bytes)

	async def get(self, key: str) -> str | None:
		return await self.client.get(key)

	async def set(self, key: str, value: str) -> None:
		_check_quota(key, value, self.quota_bytes)
		try:
			await self.client.set(key, value)
		except ResponseError as exc:
			if str(exc).startswith("OOM"):
				raise StorageQuotaExceeded(f"redis refused to store {key!r}: {exc}") from exc
			raise

	async def delete(self, key: str) -> None:
		await self.client.delete(key)

	async def ping(self) -> bool:
		try:
			return bool(await self.client.ping())
		except RedisError as exc:
			_logger.warning("storage_ping_failed", backend="redis", error=str(exc))
			return False

	async def aclose(self) -> None:
		await self.client.aclose()


def build_storage(settings: Settings) -> KeyValueStorage:
	quota = settings.storage_quota_bytes or None
	if settings.storage_backend == StorageBackend.memory:
		return MemoryStorage(quota)
	if settings.storage_backend == StorageBackend.redis:
		return RedisStorage.from_url(settings.redis_url, quota)
	return FileStorage(settings.storage_dir, quota)
