from __future__ import annotations

from dataclasses import dataclass, field
import re

import structlog

from copilotdash.errors import TransportError

logger = structlog.get_logger(__name__)

LINK_RE = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')


@dataclass
class PaginatedResult:
    items: list[object] = field(default_factory=list)
    last_page: dict = field(default_factory=dict)
    pages: int = 0


def next_link(header: str | None) -> str | None:
    """Return the URL of the ``rel="next"`` entry of a Link header, if any.

    A missing or malformed header simply ends pagination.
    """
    if not header:
        return None
    for part in header.split(","):
        m = LINK_RE.search(part)
        if m and m.group(2) == "next":
            return m.group(1)
    return None


def fetch_paginated(client, url: str, scope: str, items_key: str) -> PaginatedResult:
    """Walk ``url`` and every following ``next`` page, concatenating ``items_key``.

    ``client`` is a GitHubClient. Any failure propagates, so callers never see
    a truncated item list.
    """
    result = PaginatedResult()
    next_url: str | None = url
    while next_url:
        response = client.get(next_url, scope)
        body = client.decode(response, scope)
        if not isinstance(body, dict):
            raise TransportError(scope, ValueError(f"expected an object page, got {type(body).__name__}"))
        items = body.get(items_key) or []
        if not isinstance(items, list):
            raise TransportError(scope, ValueError(f"{items_key!r} is not a list"))
        result.items.extend(items)
        result.last_page = body
        result.pages += 1
        next_url = next_link(response.headers.get("link"))

    logger.debug("pagination_finished", scope=scope, pages=result.pages, items=len(result.items))
    return result
