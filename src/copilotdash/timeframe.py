from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Iterable

from copilotdash.models import UsageRecord


@dataclass(frozen=True)
class TimeFrameLabels:
    week: str
    month: str


def _as_date(day: str | date) -> date:
    if isinstance(day, date):
        return day
    return date.fromisoformat(day[:10])


def week_start(day: str | date) -> date:
    d = _as_date(day)
    return d - timedelta(days=d.weekday())


def label_day(day: str | date) -> TimeFrameLabels:
    """Week label is the Monday of the day's week ("Jan 06"), month label is "Jan 24"."""
    d = _as_date(day)
    monday = week_start(d)
    return TimeFrameLabels(week=monday.strftime("%b %d"), month=d.strftime("%b %y"))


def format_day(day: str | date) -> str:
    return _as_date(day).strftime("%b %d")


def apply_time_frame_labels(records: Iterable[UsageRecord]) -> list[UsageRecord]:
    labelled: list[UsageRecord] = []
    for record in sorted(records, key=lambda r: r.day):
        labels = label_day(record.day)
        labelled.append(
            replace(
                record,
                time_frame_week=labels.week,
                time_frame_month=labels.month,
                time_frame_display=labels.week,
            )
        )
    return labelled
