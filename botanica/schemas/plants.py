"""Pydantic request/response schemas for plant and care-event endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from botanica.models.enums import FertilizerTypeEnum, HistoryKindEnum
from botanica.models.plant import AnalysisResult, PlantMeasures, PlantRecord


class PlantCreate(BaseModel):
	analysis: AnalysisResult
	images: list[str] = Field(default_factory=list)
	location: str | None = Field(default=None, max_length=200)
	user_measures: PlantMeasures | None = None


class PlantUpdate(BaseModel):
	location: str | None = Field(default=None, min_length=1, max_length=200)
	user_measures: PlantMeasures | None = None


class WateringCreate(BaseModel):
	date: datetime | None = None


class FertilizingCreate(BaseModel):
	date: datetime | None = None
	kind: FertilizerTypeEnum | None = None


class MoistureCreate(BaseModel):
	date: datetime | None = None
	value: int = Field(ge=0, le=10)


class ScheduleRead(BaseModel):
	next_watering: datetime
	next_fertilizing: datetime
	watering_overdue: bool
	fertilizing_overdue: bool
	next_watering_label: str
	next_fertilizing_label: str


class PlantRead(BaseModel):
	plant: PlantRecord
	vigor_percent: int = Field(ge=0, le=100)
	effective_measures: PlantMeasures
	schedule: ScheduleRead


class PlantListRead(BaseModel):
	items: list[PlantRead]


class TimelineItemRead(BaseModel):
	date: datetime
	kind: HistoryKindEnum
	native_index: int = Field(ge=0)
	subtype: FertilizerTypeEnum | None = None
	value: int | None = None


class TimelineRead(BaseModel):
	plant_id: str
	items: list[TimelineItemRead] = Field(default_factory=list)


class CalendarDayRead(BaseModel):
	day: int
	date: datetime
	watered: bool
	fertilized: bool
	measured: bool
	is_today: bool


class CalendarRead(BaseModel):
	plant_id: str
	year: int
	month: int
	leading_blanks: int
	days: list[CalendarDayRead]


class AnalysisPreview(BaseModel):
	session_id: str
	images: list[str]
	analysis: AnalysisResult
