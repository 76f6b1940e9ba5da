from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime, timedelta

from copilotdash.errors import StoreError
from copilotdash.models import (
    Breakdown,
    Scope,
    ScopeKind,
    Seat,
    SeatBreakdown,
    SeatManagementSummary,
    SeatSnapshot,
    TOTAL_FIELDS,
    UsageRecord,
)
from copilotdash.store import Document, DocumentStore
from copilotdash.timeframe import apply_time_frame_labels

USAGE_COLLECTION = "copilot_usage"
SEATS_COLLECTION = "copilot_seats"
DEFAULT_WINDOW_DAYS = 31

_DERIVED_FIELDS = ("time_frame_week", "time_frame_month", "time_frame_display")


def _iso(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else value


def record_from_doc(doc: Document) -> UsageRecord:
    return UsageRecord(
        day=str(doc["day"]),
        **{name: int(doc.get(name) or 0) for name in TOTAL_FIELDS},
        breakdown=[Breakdown(**b) for b in doc.get("breakdown") or []],
    )


class MetricsRepository:
    """Daily usage records, one document per (scope, day)."""

    def __init__(self, store: DocumentStore, window_days: int = DEFAULT_WINDOW_DAYS):
        self.store = store
        self.window_days = window_days

    def query_range(
        self,
        scope: Scope,
        start: date | str | None = None,
        end: date | str | None = None,
        today: date | None = None,
    ) -> list[UsageRecord]:
        """Records with ``start <= day <= end``, ascending, with fresh time-frame labels.

        A missing ``end`` means today; a missing ``start`` means ``window_days`` before ``end``.
        """
        today = today or date.today()
        if end is None:
            end = today
        if start is None:
            start = (date.fromisoformat(end) if isinstance(end, str) else end) - timedelta(days=self.window_days)
        query = {**scope.as_query(), "day": {"$gte": _iso(start), "$lte": _iso(end)}}
        docs = self.store.find(USAGE_COLLECTION, query, sort="day")
        return apply_time_frame_labels(record_from_doc(d) for d in docs)

    def exists(self, scope: Scope, day: str) -> bool:
        return self.store.find_one(USAGE_COLLECTION, {**scope.as_query(), "day": day}) is not None

    def insert(self, scope: Scope, record: UsageRecord, ingested_at: datetime) -> None:
        doc = asdict(record)
        for name in _DERIVED_FIELDS:
            doc.pop(name, None)
        doc.update(scope.as_query())
        doc["ingested_at"] = ingested_at.isoformat(timespec="seconds")
        self.store.insert_one(USAGE_COLLECTION, doc)


def snapshot_to_doc(snapshot: SeatSnapshot) -> Document:
    return {
        "id": snapshot.id,
        "date": snapshot.date,
        "last_update": snapshot.last_update,
        **snapshot.scope.as_query(),
        "total_seats": snapshot.total_seats,
        "seats": [asdict(s) for s in snapshot.seats],
        "summary": asdict(snapshot.summary),
    }


def snapshot_from_doc(doc: Document) -> SeatSnapshot:
    if doc.get("enterprise"):
        scope = Scope(ScopeKind.ENTERPRISE, str(doc["enterprise"]))
    elif doc.get("organization"):
        scope = Scope(ScopeKind.ORGANIZATION, str(doc["organization"]))
    else:
        raise StoreError(f"seat snapshot {doc.get('id')} has no scope")

    summary_raw = dict(doc.get("summary") or {})
    breakdown = SeatBreakdown(**(summary_raw.pop("seat_breakdown", None) or {}))
    return SeatSnapshot(
        id=str(doc["id"]),
        date=str(doc["date"]),
        last_update=str(doc.get("last_update", "")),
        scope=scope,
        total_seats=int(doc.get("total_seats") or 0),
        seats=[Seat(**s) for s in doc.get("seats") or []],
        summary=SeatManagementSummary(seat_breakdown=breakdown, **summary_raw),
    )


class SeatsRepository:
    """Seat snapshots keyed by ``{date}-{ENT|ORG}-{name}``; one per scope per day."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, scope: Scope, day: date | str | None = None) -> SeatSnapshot | None:
        query = {**scope.as_query(), "date": _iso(day or date.today())}
        doc = self.store.find_one(SEATS_COLLECTION, query)
        return snapshot_from_doc(doc) if doc else None

    def latest(self, scope: Scope) -> SeatSnapshot | None:
        docs = self.store.find(SEATS_COLLECTION, scope.as_query(), sort="date")
        return snapshot_from_doc(docs[-1]) if docs else None

    def replace(self, snapshot: SeatSnapshot) -> None:
        self.store.replace_one(SEATS_COLLECTION, {"id": snapshot.id}, snapshot_to_doc(snapshot), upsert=True)
