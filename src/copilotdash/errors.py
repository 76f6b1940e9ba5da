from __future__ import annotations


class CopilotDashError(Exception):
    """Base exception for copilotdash."""


class ConfigError(CopilotDashError):
    """Raised when the configured scope or credentials are missing."""


class UpstreamError(CopilotDashError):
    """Raised when the GitHub API answers with a non-success status."""

    def __init__(self, scope: str, status: int, body: str = ""):
        self.scope = scope
        self.status = status
        self.body = body
        message = f"error fetching data for {scope}: HTTP {status}"
        if body:
            message = f"{message} {body[:200]}"
        super().__init__(message)


class TransportError(CopilotDashError):
    """Raised on network failures or payloads that cannot be parsed."""

    def __init__(self, scope: str, cause: Exception):
        self.scope = scope
        self.cause = cause
        super().__init__(f"transport failure for {scope}: {cause}")


class StoreError(CopilotDashError):
    """Raised when the document store cannot read or write."""
