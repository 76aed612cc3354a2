"""Next watering and fertilizing due dates.

Watering follows the analysis-derived ``care.frequency_days``; fertilizing
uses a fixed monthly interval regardless of any frequency on the record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from botanica.models.plant import PlantRecord, as_utc

DEFAULT_WATERING_FREQUENCY_DAYS = 7
FERTILIZING_INTERVAL_DAYS = 30


@dataclass(frozen=True)
class CareSchedule:
	next_watering: datetime
	next_fertilizing: datetime
	watering_overdue: bool
	fertilizing_overdue: bool


def _now(now: datetime | None) -> datetime:
	return as_utc(now) if now is not None else datetime.now(UTC)


def next_watering_date(record: PlantRecord, now: datetime | None = None) -> datetime:
	if not record.watering_history:
		return _now(now)
	frequency = record.care.frequency_days or DEFAULT_WATERING_FREQUENCY_DAYS
	return max(record.watering_history) + timedelta(days=frequency)


def next_fertilizing_date(record: PlantRecord, now: datetime | None = None) -> datetime:
	if not record.fertilizing_history:
		return _now(now)
	last = max(entry.timestamp for entry in record.fertilizing_history)
	return last + timedelta(days=FERTILIZING_INTERVAL_DAYS)


def care_schedule(record: PlantRecord, now: datetime | None = None) -> CareSchedule:
	reference = _now(now)
	next_watering = next_watering_date(record, reference)
	next_fertilizing = next_fertilizing_date(record, reference)
	return CareSchedule(
		next_watering=next_watering,
		next_fertilizing=next_fertilizing,
		watering_overdue=next_watering < reference,
		fertilizing_overdue=next_fertilizing < reference,
	)
