"""One serialized plant collection in one key-value slot."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

import structlog
from pydantic import ValidationError

from botanica.models.plant import SCHEMA_VERSION, PlantCollection, PlantRecord
from botanica.services.storage import KeyValueStorage, StorageQuotaExceeded

DEFAULT_STORAGE_KEY = "botanica_pro_plants"

_logger = structlog.get_logger("botanica.store")


class CorruptedCollection(RuntimeError):
	"""Raised by write paths when the stored slot cannot be decoded."""


class PlantStore:
	"""Owns the persisted collection; every mutation is a locked load-modify-save.

	Reads never fail on bad data: ``load`` logs and returns an empty list.
	Writes refuse to overwrite a slot they could not decode, so a corrupted
	collection is left for inspection instead of being replaced.
	"""

	def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_STORAGE_KEY):
		self.storage = storage
		self.key = key
		self._lock = asyncio.Lock()

	async def load(self) -> list[PlantRecord]:
		try:
			return await self._read()
		except CorruptedCollection as exc:
			_logger.error("plant_collection_unreadable", key=self.key, error=str(exc))
			return []

	async def get(self, plant_id: str) -> PlantRecord:
		for plant in await self.load():
			if plant.id == plant_id:
				return plant
		raise LookupError(f"Plant {plant_id} not found")

	async def save(self, record: PlantRecord) -> None:
		async with self._lock:
			plants = await self._read()
			for index, plant in enumerate(plants):
				if plant.id == record.id:
					plants[index] = record
					break
			else:
				plants.append(record)
			await self._write(plants)

	async def mutate(self, plant_id: str, change: Callable[[PlantRecord], PlantRecord]) -> PlantRecord:
		async with self._lock:
			plants = await self._read()
			index = self._index_of(plants, plant_id)
			updated = change(plants[index])
			if updated.id != plant_id:
				raise ValueError("plant id cannot change")
			plants[index] = updated
			await self._write(plants)
			return updated

	async def delete(self, plant_id: str) -> None:
		async with self._lock:
			plants = await self._read()
			index = self._index_of(plants, plant_id)
			del plants[index]
			await self._write(plants)

	async def clear(self) -> None:
		async with self._lock:
			await self.storage.delete(self.key)
			_logger.warning("plant_collection_purged", key=self.key)

	@staticmethod
	def _index_of(plants: list[PlantRecord], plant_id: str) -> int:
		for index, plant in enumerate(plants):
			if plant.id == plant_id:
				return index
		raise LookupError(f"Plant {plant_id} not found")

	async def _read(self) -> list[PlantRecord]:
		try:
			raw = await self.storage.get(self.key)
			if not raw:
				return []
			payload = json.loads(raw)
			if isinstance(payload, list):
				payload = {"schema_version": 0, "plants": payload}
			collection = PlantCollection.model_validate(payload)
		except (UnicodeDecodeError, json.JSONDecodeError, RecursionError, ValidationError) as exc:
			raise CorruptedCollection(f"slot {self.key!r} holds an unreadable collection") from exc
		if collection.schema_version > SCHEMA_VERSION:
			raise CorruptedCollection(
				f"slot {self.key!r} was written with schema_version {collection.schema_version}"
			)
		return collection.plants

	async def _write(self, plants: list[PlantRecord]) -> None:
		raw = PlantCollection(plants=plants).model_dump_json(by_alias=True)
		try:
			await self.storage.set(self.key, raw)
		except StorageQuotaExceeded as exc:
			_logger.warning("plant_collection_save_rejected", key=self.key, size_bytes=len(raw), error=str(exc))
			raise
		_logger.info("plant_collection_saved", key=self.key, plant_count=len(plants), size_bytes=len(raw))
