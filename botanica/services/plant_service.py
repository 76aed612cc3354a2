"""Plant lifecycle and care-event orchestration over the record store."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime

import structlog

from botanica.config import Settings, get_settings
from botanica.models.enums import FertilizerTypeEnum, HistoryKindEnum
from botanica.models.plant import AnalysisResult, DatedImage, PlantMeasures, PlantRecord
from botanica.schemas.plants import PlantCreate, PlantUpdate
from botanica.services import history
from botanica.services.analysis_service import AnalysisService
from botanica.services.image_codec import compress_image, encode_batch
from botanica.services.plant_store import PlantStore

DEFAULT_LOCATION = "No location"

_logger = structlog.get_logger("botanica.plants")


class PlantService:
	"""Composes the store, event history model, codec and analysis client.

	Every mutation goes through ``PlantStore.mutate`` so the change is applied
	to a freshly loaded record under the store lock.
	"""

	def __init__(
		self,
		store: PlantStore,
		analyzer: AnalysisService | None = None,
		settings: Settings | None = None,
	):
		self.store = store
		self.settings = settings or get_settings()
		self.analyzer = analyzer or AnalysisService(self.settings)

	# ── Capture & analysis ─────────────────────────────────────────────────

	async def analyze_capture(
		self,
		raw_images: Sequence[bytes],
		current_pot_diameter_cm: float | None = None,
	) -> tuple[list[str], AnalysisResult]:
		images = await encode_batch(
			raw_images,
			limit=self.settings.max_images_per_plant,
			max_edge=self.settings.image_max_edge,
			quality=self.settings.image_quality,
		)
		if not images:
			raise ValueError("none of the uploaded files is a readable image")
		result = await self.analyzer.analyze(images, current_pot_diameter_cm)
		return images, result

	# ── Records ────────────────────────────────────────────────────────────

	async def list_plants(self) -> list[PlantRecord]:
		return await self.store.load()

	async def get_plant(self, plant_id: str) -> PlantRecord:
		return await self.store.get(plant_id)

	async def create_plant(self, payload: PlantCreate, now: datetime | None = None) -> PlantRecord:
		limit = self.settings.max_images_per_plant
		if len(payload.images) > limit:
			raise ValueError(f"a plant can be created with at most {limit} images")

		created_at = now or datetime.now(UTC)
		analysis = payload.analysis
		record = PlantRecord(
			id=uuid.uuid4().hex,
			location=(payload.location or "").strip() or DEFAULT_LOCATION,
			identification=analysis.identification,
			health=analysis.health,
			suggested_measures=analysis.suggested_measures,
			user_measures=payload.user_measures,
			transplant_study=analysis.transplant_study,
			care=analysis.care,
			botanical_profile=analysis.botanical_profile,
			images=[DatedImage(url=url, captured_at=created_at) for url in payload.images],
			created_at=created_at,
		)
		await self.store.save(record)
		_logger.info(
			"plant_created",
			plant_id=record.id,
			scientific_name=record.identification.scientific_name,
			image_count=len(record.images),
		)
		return record

	async def update_plant(self, plant_id: str, payload: PlantUpdate) -> PlantRecord:
		def change(record: PlantRecord) -> PlantRecord:
			updated = record.model_copy(deep=True)
			if payload.location is not None:
				updated.location = payload.location.strip() or DEFAULT_LOCATION
			if payload.user_measures is not None:
				current = updated.user_measures or PlantMeasures()
				updated.user_measures = current.model_copy(
					update=payload.user_measures.model_dump(exclude_unset=True)
				)
			return updated

		return await self.store.mutate(plant_id, change)

	async def delete_plant(self, plant_id: str) -> None:
		await self.store.delete(plant_id)
		_logger.info("plant_deleted", plant_id=plant_id)

	async def purge(self) -> None:
		await self.store.clear()

	# ── Care events ────────────────────────────────────────────────────────

	async def record_watering(self, plant_id: str, when: datetime | None = None) -> PlantRecord:
		timestamp = when or datetime.now(UTC)
		return await self.store.mutate(plant_id, lambda record: history.append_watering(record, timestamp))

	async def record_fertilizing(
		self,
		plant_id: str,
		when: datetime | None = None,
		kind: FertilizerTypeEnum | None = None,
	) -> PlantRecord:
		timestamp = when or datetime.now(UTC)
		return await self.store.mutate(
			plant_id,
			lambda record: history.append_fertilizing(record, timestamp, kind),
		)

	async def record_moisture(
		self,
		plant_id: str,
		value: int,
		when: datetime | None = None,
		source_image: str | None = None,
	) -> PlantRecord:
		timestamp = when or datetime.now(UTC)
		return await self.store.mutate(
			plant_id,
			lambda record: history.append_moisture(record, timestamp, value, source_image),
		)

	async def record_moisture_from_photo(
		self,
		plant_id: str,
		raw_image: bytes,
		when: datetime | None = None,
	) -> PlantRecord:
		await self.store.get(plant_id)
		image = await compress_image(raw_image, self.settings.image_max_edge, self.settings.image_quality)
		value = await self.analyzer.quick_moisture_read(image)
		_logger.info("moisture_read_from_photo", plant_id=plant_id, value=value)
		return await self.record_moisture(plant_id, value, when, source_image=image)

	async def delete_event(self, plant_id: str, kind: HistoryKindEnum, index: int) -> PlantRecord:
		record = await self.store.mutate(plant_id, lambda current: history.delete_at(current, kind, index))
		_logger.info("care_event_deleted", plant_id=plant_id, kind=HistoryKindEnum(kind).value, index=index)
		return record
