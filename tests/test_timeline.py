from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from botanica.models.enums import FertilizerTypeEnum, HistoryKindEnum
from botanica.models.plant import PlantRecord
from botanica.services import history
from botanica.services.timeline import build_timeline

T0 = datetime(2024, 6, 10, 12, 0, tzinfo=UTC)


def _populated(record_factory: Callable[..., PlantRecord]) -> PlantRecord:
    record = record_factory()
    record = history.append_watering(record, T0 - timedelta(days=4))
    record = history.append_watering(record, T0)
    record = history.append_fertilizing(record, T0 - timedelta(days=2), FertilizerTypeEnum.stick)
    record = history.append_moisture(record, T0 - timedelta(days=1), 6)
    return record


def test_timeline_contains_every_event_once(record_factory: Callable[..., PlantRecord]) -> None:
    timeline = build_timeline(_populated(record_factory))

    items = list(timeline)
    assert len(items) == len(timeline) == 4
    assert {(item.kind, item.native_index) for item in items} == {
        (HistoryKindEnum.watering, 0),
        (HistoryKindEnum.watering, 1),
        (HistoryKindEnum.fertilizing, 0),
        (HistoryKindEnum.moisture, 0),
    }


def test_timeline_is_most_recent_first(record_factory: Callable[..., PlantRecord]) -> None:
    items = list(build_timeline(_populated(record_factory)))

    assert [item.date for item in items] == sorted((item.date for item in items), reverse=True)
    assert items[0].kind == HistoryKindEnum.watering
    assert items[1].kind == HistoryKindEnum.moisture
    assert items[1].value == 6
    assert items[2].subtype == FertilizerTypeEnum.stick


def test_native_index_deletes_the_listed_item(record_factory: Callable[..., PlantRecord]) -> None:
    record = _populated(record_factory)
    newest = next(iter(build_timeline(record)))

    record = history.delete_at(record, newest.kind, newest.native_index)

    assert T0 not in record.watering_history
    assert len(build_timeline(record)) == 3


def test_equal_dates_order_by_kind_then_latest_recorded(record_factory: Callable[..., PlantRecord]) -> None:
    record = record_factory()
    record = history.append_moisture(record, T0, 2)
    record = history.append_fertilizing(record, T0)
    record = history.append_watering(record, T0)
    record = history.append_watering(record, T0)

    items = list(build_timeline(record))

    assert [(item.kind, item.native_index) for item in items] == [
        (HistoryKindEnum.watering, 1),
        (HistoryKindEnum.watering, 0),
        (HistoryKindEnum.fertilizing, 0),
        (HistoryKindEnum.moisture, 0),
    ]


def test_timeline_can_be_iterated_again(record_factory: Callable[..., PlantRecord]) -> None:
    timeline = build_timeline(_populated(record_factory))

    assert list(timeline) == list(timeline)


def test_empty_record_has_empty_timeline(record_factory: Callable[..., PlantRecord]) -> None:
    timeline = build_timeline(record_factory())

    assert list(timeline) == []
    assert len(timeline) == 0


def test_every_row_deletes_exactly_its_own_entry(record_factory: Callable[..., PlantRecord]) -> None:
    record = record_factory()
    record = history.append_moisture(record, T0 - timedelta(days=1), 3)
    record = history.append_watering(record, T0 - timedelta(days=5))
    record = history.append_fertilizing(record, T0 + timedelta(days=2), FertilizerTypeEnum.stick)
    record = history.append_watering(record, T0 + timedelta(days=3))
    record = history.append_moisture(record, T0 - timedelta(days=7), 8)
    record = history.append_watering(record, T0 - timedelta(days=1))
    record = history.append_fertilizing(record, T0 - timedelta(days=9))
    record = history.append_moisture(record, T0 + timedelta(days=3), 5)

    streams = {
        HistoryKindEnum.watering: "watering_history",
        HistoryKindEnum.fertilizing: "fertilizing_history",
        HistoryKindEnum.moisture: "moisture_history",
    }
    items = list(build_timeline(record))
    assert len(items) == 8

    for item in items:
        after = history.delete_at(record, item.kind, item.native_index)

        before_entries = getattr(record, streams[item.kind])
        expected = before_entries[: item.native_index] + before_entries[item.native_index + 1 :]
        assert getattr(after, streams[item.kind]) == expected
        removed = before_entries[item.native_index]
        removed_date = removed if item.kind == HistoryKindEnum.watering else removed.timestamp
        assert removed_date == item.date
        for kind, field in streams.items():
            if kind != item.kind:
                assert getattr(after, field) == getattr(record, field)
