from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

import structlog
from pydantic import ValidationError

from copilotdash.errors import TransportError
from copilotdash.github import GitHubClient
from copilotdash.models import (
    Scope,
    ScopeKind,
    Seat,
    SeatBreakdown,
    SeatManagementSummary,
    SeatSnapshot,
)
from copilotdash.repository import SeatsRepository
from copilotdash.schemas import EnterpriseSeatsPage, OrgBillingPayload, SeatPayload

logger = structlog.get_logger(__name__)

ACTIVITY_WINDOW = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_active(seat: Seat, now: datetime) -> bool:
    last = _parse_ts(seat.last_activity_at)
    return last is not None and last >= now - ACTIVITY_WINDOW


def classify_seats(seats: Iterable[Seat], now: datetime) -> tuple[list[Seat], list[Seat]]:
    """Split seats into (active, inactive) for the 30 days ending at ``now``."""
    active: list[Seat] = []
    inactive: list[Seat] = []
    for seat in seats:
        (active if is_active(seat, now) else inactive).append(seat)
    return active, inactive


def snapshot_id(day: str, scope: Scope) -> str:
    return f"{day}-{scope.tag}-{scope.name}"


class SeatsAggregator:
    """Builds the seat-management summary for a scope and stores the day's snapshot."""

    def __init__(
        self,
        client: GitHubClient,
        repository: SeatsRepository,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.repository = repository
        self.clock = clock

    def refresh(self, scope: Scope, now: datetime | None = None) -> SeatManagementSummary:
        now = now or self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        if scope.kind == ScopeKind.ENTERPRISE:
            snapshot = self._enterprise_snapshot(scope, now)
        else:
            snapshot = self._organization_snapshot(scope, now)

        # A StoreError here propagates: stale data beats a half-written snapshot.
        self.repository.replace(snapshot)
        breakdown = snapshot.summary.seat_breakdown
        logger.info(
            "seats_refreshed",
            scope=scope.name,
            snapshot_id=snapshot.id,
            total=breakdown.total,
            active=breakdown.active_this_cycle,
        )
        return snapshot.summary

    def _stamp(self, scope: Scope, now: datetime) -> dict[str, str]:
        day = now.strftime("%Y-%m-%d")
        return {
            "id": snapshot_id(day, scope),
            "date": day,
            "last_update": now.strftime("%Y-%m-%dT%H:%M:%S"),
        }

    def _enterprise_snapshot(self, scope: Scope, now: datetime) -> SeatSnapshot:
        result = self.client.enterprise_seats(scope)
        try:
            page = EnterpriseSeatsPage.model_validate(result.last_page)
            seats = [SeatPayload.model_validate(raw).to_seat() for raw in result.items]
        except ValidationError as exc:
            raise TransportError(scope.name, exc) from exc

        active, inactive = classify_seats(seats, now)
        # The enterprise endpoint reports neither additions nor pending changes,
        # so those counters stay at zero.
        summary = SeatManagementSummary(
            seat_breakdown=SeatBreakdown(
                total=len(seats),
                active_this_cycle=len(active),
                inactive_this_cycle=len(inactive),
            )
        )
        return SeatSnapshot(
            **self._stamp(scope, now),
            scope=scope,
            total_seats=page.total_seats,
            seats=seats,
            summary=summary,
        )

    def _organization_snapshot(self, scope: Scope, now: datetime) -> SeatSnapshot:
        raw = self.client.org_billing(scope)
        try:
            summary = OrgBillingPayload.model_validate(raw).to_summary()
        except ValidationError as exc:
            raise TransportError(scope.name, exc) from exc

        return SeatSnapshot(
            **self._stamp(scope, now),
            scope=scope,
            total_seats=summary.seat_breakdown.total,
            summary=summary,
        )
