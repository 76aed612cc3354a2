"""Append and delete over the three per-kind care-event streams.

Every function returns a new record and leaves its input untouched; the
caller persists the result through the store.
"""

from __future__ import annotations

from datetime import datetime

from botanica.models.enums import FertilizerTypeEnum, HistoryKindEnum
from botanica.models.plant import FertilizingEntry, MoistureEntry, PlantRecord, as_utc

MOISTURE_MIN = 0
MOISTURE_MAX = 10

_HISTORY_FIELDS: dict[HistoryKindEnum, str] = {
	HistoryKindEnum.watering: "watering_history",
	HistoryKindEnum.fertilizing: "fertilizing_history",
	HistoryKindEnum.moisture: "moisture_history",
}


def history_field(kind: HistoryKindEnum) -> str:
	return _HISTORY_FIELDS[HistoryKindEnum(kind)]


def append_watering(record: PlantRecord, timestamp: datetime) -> PlantRecord:
	updated = record.model_copy(deep=True)
	updated.watering_history.append(as_utc(timestamp))
	return updated


def append_fertilizing(
	record: PlantRecord,
	timestamp: datetime,
	kind: FertilizerTypeEnum | None = None,
) -> PlantRecord:
	updated = record.model_copy(deep=True)
	updated.fertilizing_history.append(
		FertilizingEntry(timestamp=timestamp, kind=kind or FertilizerTypeEnum.liquid)
	)
	return updated


def append_moisture(
	record: PlantRecord,
	timestamp: datetime,
	value: int,
	source_image: str | None = None,
) -> PlantRecord:
	"""Record a substrate reading and mirror it into the health snapshot."""
	if isinstance(value, bool) or not isinstance(value, int):
		raise ValueError(f"moisture value must be an integer, got {value!r}")
	if not MOISTURE_MIN <= value <= MOISTURE_MAX:
		raise ValueError(f"moisture value must be within {MOISTURE_MIN}..{MOISTURE_MAX}, got {value}")

	updated = record.model_copy(deep=True)
	updated.moisture_history.append(
		MoistureEntry(timestamp=timestamp, value=value, source_image=source_image)
	)
	updated.health.substrate_moisture = value
	return updated


def delete_at(record: PlantRecord, kind: HistoryKindEnum, index: int) -> PlantRecord:
	"""Remove the entry at ``index`` of ``kind``'s own insertion order."""
	field = history_field(kind)
	entries = getattr(record, field)
	if not 0 <= index < len(entries):
		raise IndexError(f"{HistoryKindEnum(kind).value} history has no entry at index {index}")

	updated = record.model_copy(deep=True)
	del getattr(updated, field)[index]
	return updated
