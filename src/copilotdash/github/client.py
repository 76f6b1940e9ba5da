"""Thin synchronous client for the GitHub Copilot REST endpoints."""

from __future__ import annotations

import httpx
import structlog

from copilotdash.config import Config, resolve_token
from copilotdash.errors import ConfigError, TransportError, UpstreamError
from copilotdash.github.pagination import PaginatedResult, fetch_paginated
from copilotdash.models import Scope

logger = structlog.get_logger(__name__)


class GitHubClient:
    """Client for the Copilot usage and billing endpoints."""

    def __init__(self, cfg: Config, transport: httpx.BaseTransport | None = None):
        token = resolve_token(cfg)
        if not token:
            raise ConfigError("github.token is required to call the GitHub API")
        self._client = httpx.Client(
            base_url=cfg.github.base_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": cfg.github.api_version,
                "Cache-Control": "no-store",
            },
            timeout=cfg.github.timeout_seconds,
            transport=transport,
        )

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get(self, url: str, scope: str) -> httpx.Response:
        try:
            response = self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("github_request_failed", scope=scope, url=url, error=str(exc))
            raise TransportError(scope, exc) from exc

        if not response.is_success:
            logger.warning("github_error_status", scope=scope, url=url, status=response.status_code)
            raise UpstreamError(scope, response.status_code, response.text)
        return response

    def decode(self, response: httpx.Response, scope: str) -> object:
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(scope, exc) from exc

    def get_json(self, url: str, scope: str) -> object:
        return self.decode(self.get(url, scope), scope)

    # Endpoints

    def copilot_usage(self, scope: Scope) -> list:
        body = self.get_json(f"{scope.api_path}/copilot/usage", scope.name)
        if not isinstance(body, list):
            raise TransportError(scope.name, ValueError("usage payload is not a list"))
        return body

    def enterprise_seats(self, scope: Scope) -> PaginatedResult:
        return fetch_paginated(self, f"{scope.api_path}/copilot/billing/seats", scope.name, "seats")

    def org_billing(self, scope: Scope) -> dict:
        body = self.get_json(f"{scope.api_path}/copilot/billing", scope.name)
        if not isinstance(body, dict):
            raise TransportError(scope.name, ValueError("billing payload is not an object"))
        return body
