from datetime import date, datetime, timezone

import pytest

from copilotdash.errors import StoreError, TransportError, UpstreamError
from copilotdash.github import GitHubClient
from copilotdash.ingest import MetricsIngestor
from copilotdash.models import Scope, ScopeKind
from copilotdash.repository import USAGE_COLLECTION, MetricsRepository

USAGE = "/enterprises/acme/copilot/usage"
ACME = Scope(ScopeKind.ENTERPRISE, "acme")
FIXED = datetime(2024, 1, 10, 6, 0, tzinfo=timezone.utc)


def _ingestor(cfg, github, store) -> MetricsIngestor:
    client = GitHubClient(cfg, transport=github.transport)
    return MetricsIngestor(client, MetricsRepository(store), clock=lambda: FIXED)


def test_ingest_writes_each_day_once(ent_cfg, github, store, usage_payload) -> None:
    github.add(USAGE, json_body=usage_payload)
    ingestor = _ingestor(ent_cfg, github, store)

    assert ingestor.ingest(ACME) == 3
    assert ingestor.ingest(ACME) == 0

    docs = store.find(USAGE_COLLECTION, {"day": "2024-01-02"})
    assert len(docs) == 1
    assert len(store.find(USAGE_COLLECTION)) == 3
    assert docs[0]["enterprise"] == "acme"
    assert docs[0]["organization"] is None
    assert docs[0]["ingested_at"] == "2024-01-10T06:00:00+00:00"
    assert "time_frame_week" not in docs[0]


def test_existing_day_is_never_overwritten(ent_cfg, github, store, usage_payload) -> None:
    github.add(USAGE, json_body=usage_payload[:1])
    ingestor = _ingestor(ent_cfg, github, store)
    ingestor.ingest(ACME)

    changed = dict(usage_payload[0], total_suggestions_count=9999)
    github.add(USAGE, json_body=[changed])
    assert ingestor.ingest(ACME) == 0

    (doc,) = store.find(USAGE_COLLECTION, {"day": "2024-01-02"})
    assert doc["total_suggestions_count"] == 120


def test_same_day_in_other_scope_is_a_separate_record(ent_cfg, github, store, usage_payload) -> None:
    github.add(USAGE, json_body=usage_payload[:1])
    github.add("/enterprises/globex/copilot/usage", json_body=usage_payload[:1])
    ingestor = _ingestor(ent_cfg, github, store)

    ingestor.ingest(ACME)
    ingestor.ingest(Scope(ScopeKind.ENTERPRISE, "globex"))

    assert len(store.find(USAGE_COLLECTION, {"day": "2024-01-02"})) == 2


def test_fetch_failure_writes_nothing(ent_cfg, github, store) -> None:
    github.add(USAGE, status=403, json_body={"message": "Resource not accessible"})
    ingestor = _ingestor(ent_cfg, github, store)

    with pytest.raises(UpstreamError) as info:
        ingestor.ingest(ACME)

    assert info.value.status == 403
    assert store.find(USAGE_COLLECTION) == []


def test_invalid_payload_is_rejected_before_any_write(ent_cfg, github, store, usage_payload) -> None:
    bad = dict(usage_payload[1], total_suggestions_count=-1)
    github.add(USAGE, json_body=[usage_payload[0], bad])
    ingestor = _ingestor(ent_cfg, github, store)

    with pytest.raises(TransportError):
        ingestor.ingest(ACME)
    assert store.find(USAGE_COLLECTION) == []


def test_store_failure_skips_only_that_day(ent_cfg, github, store, usage_payload) -> None:
    github.add(USAGE, json_body=usage_payload)

    class FlakyRepository(MetricsRepository):
        def insert(self, scope, record, ingested_at):
            if record.day == "2024-01-03":
                raise StoreError("disk full")
            super().insert(scope, record, ingested_at)

    client = GitHubClient(ent_cfg, transport=github.transport)
    ingestor = MetricsIngestor(client, FlakyRepository(store), clock=lambda: FIXED)

    assert ingestor.ingest(ACME) == 2
    days = [d["day"] for d in store.find(USAGE_COLLECTION, sort="day")]
    assert days == ["2024-01-02", "2024-01-08"]

    # The next run picks the skipped day up again.
    ingestor.repository = MetricsRepository(store)
    assert ingestor.ingest(ACME) == 1


def test_ingested_records_come_back_through_query_range(ent_cfg, github, store, usage_payload) -> None:
    github.add(USAGE, json_body=usage_payload)
    _ingestor(ent_cfg, github, store).ingest(ACME)

    records = MetricsRepository(store).query_range(ACME, date(2024, 1, 1), date(2024, 1, 31))
    assert [r.day for r in records] == ["2024-01-02", "2024-01-03", "2024-01-08"]
    assert records[0].breakdown[0].language == "python"
