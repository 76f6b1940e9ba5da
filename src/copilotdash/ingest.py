from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import structlog
from pydantic import ValidationError

from copilotdash.errors import StoreError, TransportError
from copilotdash.github import GitHubClient
from copilotdash.models import Scope, UsageRecord
from copilotdash.repository import MetricsRepository
from copilotdash.schemas import UsagePayload

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_usage(raw: list, scope: Scope) -> list[UsageRecord]:
    """Validate the whole payload before anything is written."""
    try:
        return [UsagePayload.model_validate(item).to_record() for item in raw]
    except ValidationError as exc:
        raise TransportError(scope.name, exc) from exc


class MetricsIngestor:
    """Pulls the daily usage payload for a scope and stores days not seen before."""

    def __init__(
        self,
        client: GitHubClient,
        repository: MetricsRepository,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.repository = repository
        self.clock = clock

    def ingest(self, scope: Scope) -> int:
        records = parse_usage(self.client.copilot_usage(scope), scope)

        written = 0
        for record in records:
            try:
                if self.repository.exists(scope, record.day):
                    logger.debug("usage_day_exists", scope=scope.name, day=record.day)
                    continue
                self.repository.insert(scope, record, ingested_at=self.clock())
            except StoreError as exc:
                # The next scheduled run fetches the same day again and retries.
                logger.warning("usage_record_skipped", scope=scope.name, day=record.day, error=str(exc))
                continue
            written += 1

        logger.info("usage_ingested", scope=scope.name, received=len(records), written=written)
        return written
