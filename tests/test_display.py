from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime

import pytest

from botanica.models.plant import PlantMeasures, PlantRecord
from botanica.services import display, history


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0.85, 85), (85, 85), (0, 0), (None, 0), (1, 100), (72.5, 73), (100, 100)],
)
def test_vigor_percent(raw: float | None, expected: int) -> None:
    assert display.vigor_percent(raw) == expected


def test_effective_measures_prefers_user_values(record_factory: Callable[..., PlantRecord]) -> None:
    record = record_factory(user_measures=PlantMeasures(height_cm=75))

    measures = display.effective_measures(record)

    assert measures.height_cm == 75
    assert measures.pot_diameter_cm == 20
    assert record.suggested_measures.height_cm == 60


def test_effective_measures_without_user_override(record_factory: Callable[..., PlantRecord]) -> None:
    record = record_factory()

    assert display.effective_measures(record) == record.suggested_measures


def test_format_short_date() -> None:
    assert display.format_short_date(datetime(2024, 1, 8, 15, tzinfo=UTC)) == "8 Jan"
    assert display.format_short_date(None) == display.PENDING_LABEL


def test_format_short_date_in_display_timezone() -> None:
    late = datetime(2024, 1, 8, 23, 30, tzinfo=UTC)

    assert display.format_short_date(late, "Europe/Madrid") == "9 Jan"


def test_calendar_month_marks_events(record_factory: Callable[..., PlantRecord]) -> None:
    record = history.append_watering(record_factory(), datetime(2024, 1, 3, 9, tzinfo=UTC))
    record = history.append_fertilizing(record, datetime(2024, 1, 15, 9, tzinfo=UTC))
    record = history.append_moisture(record, datetime(2024, 1, 3, 18, tzinfo=UTC), 5)

    view = display.calendar_month(record, 2024, 1, today=date(2024, 1, 20))

    assert view.leading_blanks == 0
    assert len(view.days) == 31
    third = view.days[2]
    assert third.watered and third.measured and not third.fertilized
    assert view.days[14].fertilized
    assert view.days[19].is_today
    assert sum(day.watered for day in view.days) == 1
    assert third.date == datetime(2024, 1, 3, tzinfo=UTC)


def test_calendar_month_weeks_start_on_monday(record_factory: Callable[..., PlantRecord]) -> None:
    # 1 September 2024 is a Sunday.
    view = display.calendar_month(record_factory(), 2024, 9, today=date(2024, 1, 1))

    assert view.leading_blanks == 6
    assert len(view.days) == 30
    assert not any(day.is_today for day in view.days)


def test_botanical_report(record_factory: Callable[..., PlantRecord]) -> None:
    report = display.botanical_report(record_factory())

    assert report.startswith("BOTANICAL SHEET: Monstera deliciosa\n\n")
    assert "Origin: Selvas de México" in report
    assert "Longevity: Décadas" in report
    assert report.endswith("CURIOSITIES:\nSu fruto es comestible")


def test_zeroed_user_measures_fall_back_to_suggested(record_factory: Callable[..., PlantRecord]) -> None:
    legacy = record_factory().to_stored()
    legacy["medidas_usuario"] = {"altura_cm": 70, "maceta_diametro_cm": 0, "maceta_altura_cm": 0}
    record = PlantRecord.model_validate(legacy)

    measures = display.effective_measures(record)

    assert measures.height_cm == 70
    assert measures.pot_diameter_cm == 20
    assert measures.pot_height_cm == 18
