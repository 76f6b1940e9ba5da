from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from copilotdash.config import Config, GitHubConfig, StoreConfig
from copilotdash.store import DocumentStore

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str):
    return json.loads((FIXTURES / name).read_text())


class FakeGitHub:
    """Routes requests by path (plus query) to canned responses and records them."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, object, dict]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, status: int = 200, json_body=None, headers: dict | None = None) -> None:
        self.routes[path] = (status, json_body, headers or {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = request.url.path
        if request.url.query:
            key = f"{key}?{request.url.query.decode()}"
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})
        status, body, headers = self.routes[key]
        return httpx.Response(status, json=body, headers=headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_config(tmp_path: Path, scope: str = "enterprise") -> Config:
    return Config(
        github=GitHubConfig(scope=scope, enterprise="acme", organization="acme-org", token="test-token"),
        store=StoreConfig(path=str(tmp_path / "store")),
    )


@pytest.fixture
def store():
    with DocumentStore() as s:
        yield s


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def ent_cfg(tmp_path: Path) -> Config:
    return make_config(tmp_path, "enterprise")


@pytest.fixture
def org_cfg(tmp_path: Path) -> Config:
    return make_config(tmp_path, "organization")


@pytest.fixture
def usage_payload() -> list[dict]:
    return load_fixture("usage_sample.json")


@pytest.fixture
def org_billing_payload() -> dict:
    return load_fixture("org_billing_sample.json")
