"""Scheduled entry points. Each returns a JobResult instead of raising."""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import asdict, is_dataclass
from enum import Enum
import json

import httpx
import structlog

from copilotdash.config import Config, resolve_scope
from copilotdash.errors import CopilotDashError
from copilotdash.github import GitHubClient
from copilotdash.ingest import MetricsIngestor
from copilotdash.models import JobResult
from copilotdash.repository import MetricsRepository, SeatsRepository
from copilotdash.seats import SeatsAggregator
from copilotdash.store import DocumentStore

logger = structlog.get_logger(__name__)


def open_store(cfg: Config) -> DocumentStore:
    store = DocumentStore(cfg.store.path)
    store.open()
    return store


def _run(job: str, cfg: Config, store: DocumentStore | None, transport: httpx.BaseTransport | None, work) -> JobResult:
    try:
        scope = resolve_scope(cfg)
        with ExitStack() as stack:
            if store is None:
                store = open_store(cfg)
                stack.callback(store.close)
            client = stack.enter_context(GitHubClient(cfg, transport=transport))
            value = work(client, store, scope)
    except CopilotDashError as exc:
        logger.error(f"{job}_failed", error=str(exc), error_type=type(exc).__name__)
        return JobResult.failure(str(exc))
    return JobResult.success(value)


def ingest_usage(
    cfg: Config,
    store: DocumentStore | None = None,
    transport: httpx.BaseTransport | None = None,
) -> JobResult:
    def work(client, store, scope):
        repo = MetricsRepository(store, window_days=cfg.dashboard.window_days)
        return MetricsIngestor(client, repo).ingest(scope)

    return _run("usage_ingest", cfg, store, transport, work)


def refresh_seats(
    cfg: Config,
    store: DocumentStore | None = None,
    transport: httpx.BaseTransport | None = None,
) -> JobResult:
    def work(client, store, scope):
        return SeatsAggregator(client, SeatsRepository(store)).refresh(scope)

    return _run("seat_refresh", cfg, store, transport, work)


def run_scheduled(
    cfg: Config,
    store: DocumentStore | None = None,
    transport: httpx.BaseTransport | None = None,
) -> dict[str, JobResult]:
    """Both jobs, in order; a failing ingest does not stop the seat refresh."""
    return {
        "usage": ingest_usage(cfg, store, transport),
        "seats": refresh_seats(cfg, store, transport),
    }


def _json_default(obj):
    if is_dataclass(obj):
        return asdict(obj)
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"not serializable: {type(obj)!r}")


def result_to_json(result: JobResult | dict[str, JobResult]) -> str:
    if isinstance(result, dict):
        payload = {name: asdict(r) for name, r in result.items()}
    else:
        payload = asdict(result)
    return json.dumps(payload, default=_json_default, indent=2)
