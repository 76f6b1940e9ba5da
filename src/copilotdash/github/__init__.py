from copilotdash.github.client import GitHubClient
from copilotdash.github.pagination import PaginatedResult, fetch_paginated, next_link

__all__ = ["GitHubClient", "PaginatedResult", "fetch_paginated", "next_link"]
