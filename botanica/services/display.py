"""Read-time presentation helpers shared by the plant routes."""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from botanica.models.plant import PlantMeasures, PlantRecord

PENDING_LABEL = "Pending"


def vigor_percent(value: float | None) -> int:
	"""Vigor as a 0-100 integer; values in (0, 1] are fractions of one."""
	if value is None:
		return 0
	if 0 < value <= 1:
		value = value * 100
	return math.floor(value + 0.5)


def effective_measures(record: PlantRecord) -> PlantMeasures:
	"""User measures override suggested ones field by field; 0 counts as unset."""
	merged = record.suggested_measures.model_copy()
	if record.user_measures is None:
		return merged
	for name in PlantMeasures.model_fields:
		override = getattr(record.user_measures, name)
		if override:
			setattr(merged, name, override)
	return merged


def format_short_date(value: datetime | None, tz: str = "UTC") -> str:
	if value is None:
		return PENDING_LABEL
	local = value.astimezone(ZoneInfo(tz)) if value.tzinfo else value
	return f"{local.day} {calendar.month_abbr[local.month]}"


@dataclass(frozen=True)
class CalendarDay:
	day: int
	date: datetime
	watered: bool
	fertilized: bool
	measured: bool
	is_today: bool


@dataclass(frozen=True)
class CalendarMonth:
	year: int
	month: int
	leading_blanks: int
	days: list[CalendarDay] = field(default_factory=list)


def calendar_month(
	record: PlantRecord,
	year: int,
	month: int,
	today: date | None = None,
	tz: str = "UTC",
) -> CalendarMonth:
	"""Mark each day of a month (weeks start on Monday) with its care events.

	``date`` on each day is local midnight, the value the client sends back
	when the user records an event for that day.
	"""
	zone = ZoneInfo(tz)
	today = today or datetime.now(zone).date()

	def local_dates(stamps: list[datetime]) -> set[date]:
		return {stamp.astimezone(zone).date() for stamp in stamps}

	watered = local_dates(record.watering_history)
	fertilized = local_dates([entry.timestamp for entry in record.fertilizing_history])
	measured = local_dates([entry.timestamp for entry in record.moisture_history])

	leading_blanks, days_in_month = calendar.monthrange(year, month)
	days: list[CalendarDay] = []
	for day in range(1, days_in_month + 1):
		current = date(year, month, day)
		days.append(
			CalendarDay(
				day=day,
				date=datetime(year, month, day, tzinfo=zone).astimezone(UTC),
				watered=current in watered,
				fertilized=current in fertilized,
				measured=current in measured,
				is_today=current == today,
			)
		)
	return CalendarMonth(year=year, month=month, leading_blanks=leading_blanks, days=days)


def botanical_report(record: PlantRecord) -> str:
	"""Plain-text botanical sheet the client copies to the clipboard."""
	profile = record.botanical_profile
	return (
		f"BOTANICAL SHEET: {record.identification.scientific_name}\n\n"
		f"Origin: {profile.geographic_origin}\n"
		f"Longevity: {profile.estimated_longevity}\n\n"
		f"REPORT:\n{profile.extended_explanation}\n\n"
		f"CURIOSITIES:\n{profile.curiosities}"
	)
