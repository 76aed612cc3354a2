"""Merged, most-recent-first view of a plant's events."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime

from botanica.models.enums import FertilizerTypeEnum, HistoryKindEnum
from botanica.models.plant import PlantRecord

# Same-instant events are listed in this kind order.
_KIND_PRIORITY: dict[HistoryKindEnum, int] = {
	HistoryKindEnum.watering: 0,
	HistoryKindEnum.fertilizing: 1,
	HistoryKindEnum.moisture: 2,
}


@dataclass(frozen=True)
class TimelineItem:
	date: datetime
	kind: HistoryKindEnum
	native_index: int
	subtype: FertilizerTypeEnum | None = None
	value: int | None = None


class Timeline:
	"""Restartable view over a record; each iteration re-merges the histories.

	Items sort by date descending. Equal dates order by kind (watering,
	fertilizing, moisture) and then by native index descending, so the entry
	recorded last comes first. ``native_index`` addresses the item in its
	own kind's list, which is what ``history.delete_at`` expects.
	"""

	def __init__(self, record: PlantRecord):
		self.record = record

	def __iter__(self) -> Iterator[TimelineItem]:
		items = [*self._watering(), *self._fertilizing(), *self._moisture()]
		items.sort(key=lambda item: (-item.date.timestamp(), _KIND_PRIORITY[item.kind], -item.native_index))
		return iter(items)

	def __len__(self) -> int:
		return (
			len(self.record.watering_history)
			+ len(self.record.fertilizing_history)
			+ len(self.record.moisture_history)
		)

	def _watering(self) -> Iterator[TimelineItem]:
		for index, timestamp in enumerate(self.record.watering_history):
			yield TimelineItem(date=timestamp, kind=HistoryKindEnum.watering, native_index=index)

	def _fertilizing(self) -> Iterator[TimelineItem]:
		for index, entry in enumerate(self.record.fertilizing_history):
			yield TimelineItem(
				date=entry.timestamp,
				kind=HistoryKindEnum.fertilizing,
				native_index=index,
				subtype=entry.kind,
			)

	def _moisture(self) -> Iterator[TimelineItem]:
		for index, entry in enumerate(self.record.moisture_history):
			yield TimelineItem(
				date=entry.timestamp,
				kind=HistoryKindEnum.moisture,
				native_index=index,
				value=entry.value,
			)


def build_timeline(record: PlantRecord) -> Timeline:
	return Timeline(record)
