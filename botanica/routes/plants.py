"""Plant record, care-event and derived-view routes."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import PlainTextResponse

from botanica.config import get_settings
from botanica.dependencies import get_plant_service
from botanica.models.enums import HistoryKindEnum
from botanica.models.plant import PlantRecord
from botanica.schemas.plants import (
	CalendarDayRead,
	CalendarRead,
	FertilizingCreate,
	MoistureCreate,
	PlantCreate,
	PlantListRead,
	PlantRead,
	PlantUpdate,
	ScheduleRead,
	TimelineItemRead,
	TimelineRead,
	WateringCreate,
)
from botanica.services import display, schedule
from botanica.services.analysis_service import AnalysisErrorKind, AnalysisUnavailable
from botanica.services.plant_service import PlantService
from botanica.services.plant_store import CorruptedCollection
from botanica.services.storage import StorageQuotaExceeded
from botanica.services.timeline import build_timeline

router = APIRouter(prefix="/plants", tags=["plants"])

STORAGE_FULL_MESSAGE = "Device storage is full. Delete old plants or photos to free space."


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, StorageQuotaExceeded):
		return HTTPException(
			status_code=status.HTTP_507_INSUFFICIENT_STORAGE,
			detail={"error": "storage_quota_exceeded", "message": STORAGE_FULL_MESSAGE},
		)
	if isinstance(exc, AnalysisUnavailable):
		code = (
			status.HTTP_503_SERVICE_UNAVAILABLE
			if exc.kind == AnalysisErrorKind.missing_credential
			else status.HTTP_502_BAD_GATEWAY
		)
		return HTTPException(status_code=code, detail={"error": exc.kind.value, "message": str(exc)})
	if isinstance(exc, CorruptedCollection):
		return HTTPException(
			status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
			detail={"error": "corrupted_collection", "message": str(exc)},
		)
	if isinstance(exc, IndexError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected plant service failure",
	)


def _to_schedule_read(record: PlantRecord, now: datetime | None = None) -> ScheduleRead:
	tz = get_settings().display_timezone
	care = schedule.care_schedule(record, now)
	return ScheduleRead(
		next_watering=care.next_watering,
		next_fertilizing=care.next_fertilizing,
		watering_overdue=care.watering_overdue,
		fertilizing_overdue=care.fertilizing_overdue,
		next_watering_label=display.format_short_date(care.next_watering, tz),
		next_fertilizing_label=display.format_short_date(care.next_fertilizing, tz),
	)


def _to_plant_read(record: PlantRecord) -> PlantRead:
	return PlantRead(
		plant=record,
		vigor_percent=display.vigor_percent(record.health.vigor_index),
		effective_measures=display.effective_measures(record),
		schedule=_to_schedule_read(record),
	)


# ── Records ────────────────────────────────────────────────────────────────


@router.get("", response_model=PlantListRead, response_model_by_alias=False)
async def list_plants(service: PlantService = Depends(get_plant_service)) -> PlantListRead:
	try:
		plants = await service.list_plants()
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlantListRead(items=[_to_plant_read(plant) for plant in plants])


@router.post(
	"",
	response_model=PlantRead,
	response_model_by_alias=False,
	status_code=status.HTTP_201_CREATED,
)
async def create_plant(
	payload: PlantCreate,
	service: PlantService = Depends(get_plant_service),
) -> PlantRead:
	try:
		record = await service.create_plant(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_plant_read(record)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def purge_plants(service: PlantService = Depends(get_plant_service)) -> None:
	try:
		await service.purge()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{plant_id}", response_model=PlantRead, response_model_by_alias=False)
async def get_plant(plant_id: str, service: PlantService = Depends(get_plant_service)) -> PlantRead:
	try:
		record = await service.get_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_plant_read(record)


@router.patch("/{plant_id}", response_model=PlantRead, response_model_by_alias=False)
async def update_plant(
	plant_id: str,
	payload: PlantUpdate,
	service: PlantService = Depends(get_plant_service),
) -> PlantRead:
	try:
		record = await service.update_plant(plant_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_plant_read(record)


@router.delete("/{plant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plant(plant_id: str, service: PlantService = Depends(get_plant_service)) -> None:
	try:
		await service.delete_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc


# ── Care events ────────────────────────────────────────────────────────────


@router.post(
	"/{plant_id}/watering",
	response_model=PlantRead,
	response_model_by_alias=False,
	status_code=status.HTTP_201_CREATED,
)
async def record_watering(
	plant_id: str,
	payload: WateringCreate,
	service: PlantService = Depends(get_plant_service),
) -> PlantRead:
	try:
		record = await service.record_watering(plant_id, payload.date)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_plant_read(record)


@router.post(
	"/{plant_id}/fertilizing",
	response_model=PlantRead,
	response_model_by_alias=False,
	status_code=status.HTTP_201_CREATED,
)
async def record_fertilizing(
	plant_id: str,
	payload: FertilizingCreate,
	service: PlantService = Depends(get_plant_service),
) -> PlantRead:
	try:
		record = await service.record_fertilizing(plant_id, payload.date, payload.kind)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_plant_read(record)


@router.post(
	"/{plant_id}/moisture",
	response_model=PlantRead,
	response_model_by_alias=False,
	status_code=status.HTTP_201_CREATED,
)
async def record_moisture(
	plant_id: str,
	payload: MoistureCreate,
	service: PlantService = Depends(get_plant_service),
) -> PlantRead:
	try:
		record = await service.record_moisture(plant_id, payload.value, payload.date)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_plant_read(record)


@router.post(
	"/{plant_id}/moisture/photo",
	response_model=PlantRead,
	response_model_by_alias=False,
	status_code=status.HTTP_201_CREATED,
)
async def record_moisture_from_photo(
	plant_id: str,
	image: UploadFile = File(...),
	service: PlantService = Depends(get_plant_service),
) -> PlantRead:
	try:
		record = await service.record_moisture_from_photo(plant_id, await image.read())
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_plant_read(record)


@router.delete(
	"/{plant_id}/history/{kind}/{index}",
	response_model=PlantRead,
	response_model_by_alias=False,
)
async def delete_care_event(
	plant_id: str,
	kind: HistoryKindEnum,
	index: int,
	service: PlantService = Depends(get_plant_service),
) -> PlantRead:
	try:
		record = await service.delete_event(plant_id, kind, index)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_plant_read(record)


# ── Derived views ──────────────────────────────────────────────────────────


@router.get("/{plant_id}/timeline", response_model=TimelineRead)
async def get_timeline(plant_id: str, service: PlantService = Depends(get_plant_service)) -> TimelineRead:
	try:
		record = await service.get_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return TimelineRead(
		plant_id=record.id,
		items=[
			TimelineItemRead(
				date=item.date,
				kind=item.kind,
				native_index=item.native_index,
				subtype=item.subtype,
				value=item.value,
			)
			for item in build_timeline(record)
		],
	)


@router.get("/{plant_id}/schedule", response_model=ScheduleRead)
async def get_schedule(plant_id: str, service: PlantService = Depends(get_plant_service)) -> ScheduleRead:
	try:
		record = await service.get_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_schedule_read(record)


@router.get("/{plant_id}/calendar", response_model=CalendarRead)
async def get_calendar(
	plant_id: str,
	year: int | None = Query(default=None, ge=1900, le=9998),
	month: int | None = Query(default=None, ge=1, le=12),
	service: PlantService = Depends(get_plant_service),
) -> CalendarRead:
	try:
		record = await service.get_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc

	tz = get_settings().display_timezone
	today = datetime.now(ZoneInfo(tz))
	view = display.calendar_month(record, year or today.year, month or today.month, tz=tz)
	return CalendarRead(
		plant_id=record.id,
		year=view.year,
		month=view.month,
		leading_blanks=view.leading_blanks,
		days=[
			CalendarDayRead(
				day=day.day,
				date=day.date,
				watered=day.watered,
				fertilized=day.fertilized,
				measured=day.measured,
				is_today=day.is_today,
			)
			for day in view.days
		],
	)


@router.get("/{plant_id}/report", response_class=PlainTextResponse)
async def get_botanical_report(plant_id: str, service: PlantService = Depends(get_plant_service)) -> str:
	try:
		record = await service.get_plant(plant_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return display.botanical_report(record)
