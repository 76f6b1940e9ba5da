"""Dashboard filter state.

``DashboardState`` holds the records a view was loaded with plus the user's
facet and time-frame choices, and keeps ``filtered_data`` in step with them.
Views subscribe to it; nothing in here knows about a UI toolkit.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, replace
from typing import Callable, Iterable

from copilotdash.models import (
    Breakdown,
    COUNTER_FIELDS,
    Scope,
    SeatManagementSummary,
    TimeFrame,
    TOTAL_FIELDS,
    UsageRecord,
)
from copilotdash.timeframe import format_day, label_day, week_start

Listener = Callable[["DashboardState"], None]


@dataclass
class FilterItem:
    value: str
    is_selected: bool = False


def _merge_breakdowns(records: list[UsageRecord]) -> list[Breakdown]:
    merged: dict[tuple[str, str], Breakdown] = {}
    for record in records:
        for entry in record.breakdown:
            current = merged.get(entry.key)
            if current is None:
                merged[entry.key] = replace(entry)
                continue
            for name in COUNTER_FIELDS:
                setattr(current, name, getattr(current, name) + getattr(entry, name))
    return list(merged.values())


def _merge_bucket(label: str, records: list[UsageRecord]) -> UsageRecord:
    first = records[0]
    totals = {name: sum(getattr(r, name) for r in records) for name in TOTAL_FIELDS}
    return UsageRecord(
        day=first.day,
        **totals,
        breakdown=_merge_breakdowns(records),
        time_frame_week=first.time_frame_week,
        time_frame_month=first.time_frame_month,
        time_frame_display=label,
    )


def bucket_records(records: Iterable[UsageRecord], time_frame: TimeFrame) -> list[UsageRecord]:
    """Group daily records into display buckets; the input is never mutated."""
    if time_frame == TimeFrame.DAILY:
        return [replace(deepcopy(r), time_frame_display=format_day(r.day)) for r in records]

    # Keyed by date so the same week label from different years stays apart.
    groups: dict[str, tuple[str, list[UsageRecord]]] = {}
    for record in records:
        labels = label_day(record.day)
        if time_frame == TimeFrame.WEEKLY:
            key, label = week_start(record.day).isoformat(), labels.week
        else:
            key, label = record.day[:7], labels.month
        groups.setdefault(key, (label, []))[1].append(record)
    return [_merge_bucket(label, group) for label, group in groups.values()]


def _distinct(records: Iterable[UsageRecord], attr: str) -> list[FilterItem]:
    seen: dict[str, FilterItem] = {}
    for record in records:
        for entry in record.breakdown:
            value = getattr(entry, attr)
            if value not in seen:
                seen[value] = FilterItem(value)
    return list(seen.values())


class DashboardState:
    def __init__(self) -> None:
        self.scope: Scope | None = None
        self.filtered_data: list[UsageRecord] = []
        self.languages: list[FilterItem] = []
        self.editors: list[FilterItem] = []
        self.time_frame: TimeFrame = TimeFrame.DAILY
        self.seat_management: SeatManagementSummary | None = None
        self._records: list[UsageRecord] = []
        self._listeners: list[Listener] = []

    @property
    def records(self) -> list[UsageRecord]:
        return deepcopy(self._records)

    @property
    def selected_languages(self) -> list[str]:
        return [item.value for item in self.languages if item.is_selected]

    @property
    def selected_editors(self) -> list[str]:
        return [item.value for item in self.editors if item.is_selected]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Transitions

    def init(
        self,
        records: Iterable[UsageRecord],
        seat_management: SeatManagementSummary | None = None,
        scope: Scope | None = None,
    ) -> None:
        self._load(records, scope)
        self.seat_management = seat_management
        self.time_frame = TimeFrame.DAILY
        self._recompute()

    def refresh(
        self,
        records: Iterable[UsageRecord],
        seat_management: SeatManagementSummary | None = None,
        scope: Scope | None = None,
    ) -> bool:
        """Swap in freshly loaded records without dropping the user's choices.

        Facets are rebuilt only when the record set or scope changed; selections
        that still exist and the time frame carry over. Returns True on a rebuild.
        """
        records = list(records)
        changed = scope != self.scope or records != self._records
        if changed:
            languages = set(self.selected_languages)
            editors = set(self.selected_editors)
            self._load(records, scope)
            for item in self.languages:
                item.is_selected = item.value in languages
            for item in self.editors:
                item.is_selected = item.value in editors
        self.seat_management = seat_management
        self._recompute()
        return changed

    def toggle_language(self, name: str) -> None:
        self._toggle(self.languages, name)

    def toggle_editor(self, name: str) -> None:
        self._toggle(self.editors, name)

    def set_time_frame(self, time_frame: TimeFrame | str) -> None:
        self.time_frame = TimeFrame(time_frame)
        self._recompute()

    def reset_filters(self) -> None:
        for item in self.languages + self.editors:
            item.is_selected = False
        self._recompute()

    # Internals

    def _load(self, records: Iterable[UsageRecord], scope: Scope | None) -> None:
        self._records = deepcopy(list(records))
        self.scope = scope
        self.languages = _distinct(self._records, "language")
        self.editors = _distinct(self._records, "editor")

    def _toggle(self, items: list[FilterItem], name: str) -> None:
        for item in items:
            if item.value == name:
                item.is_selected = not item.is_selected
                self._recompute()
                return

    def _recompute(self) -> None:
        buckets = bucket_records(self._records, self.time_frame)

        languages = set(self.selected_languages)
        editors = set(self.selected_editors)
        if languages:
            buckets = [replace(b, breakdown=[e for e in b.breakdown if e.language in languages]) for b in buckets]
        if editors:
            buckets = [replace(b, breakdown=[e for e in b.breakdown if e.editor in editors]) for b in buckets]

        self.filtered_data = [b for b in buckets if b.breakdown]
        for listener in list(self._listeners):
            listener(self)
