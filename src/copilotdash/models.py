from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ScopeKind(str, Enum):
    ENTERPRISE = "enterprise"
    ORGANIZATION = "organization"


class StatusKind(str, Enum):
    OK = "ok"
    ERROR = "error"


class TimeFrame(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class Scope:
    kind: ScopeKind
    name: str

    @property
    def tag(self) -> str:
        return "ENT" if self.kind == ScopeKind.ENTERPRISE else "ORG"

    @property
    def api_path(self) -> str:
        if self.kind == ScopeKind.ENTERPRISE:
            return f"/enterprises/{self.name}"
        return f"/orgs/{self.name}"

    def as_query(self) -> dict[str, str | None]:
        """Store fields identifying this scope; the other kind is always null."""
        return {
            "enterprise": self.name if self.kind == ScopeKind.ENTERPRISE else None,
            "organization": self.name if self.kind == ScopeKind.ORGANIZATION else None,
        }

    def __str__(self) -> str:
        return self.name


COUNTER_FIELDS = (
    "suggestions_count",
    "acceptances_count",
    "lines_suggested",
    "lines_accepted",
    "active_users",
)

TOTAL_FIELDS = (
    "total_suggestions_count",
    "total_acceptances_count",
    "total_lines_suggested",
    "total_lines_accepted",
    "total_active_users",
    "total_chat_acceptances",
    "total_chat_turns",
    "total_active_chat_users",
)


@dataclass
class Breakdown:
    language: str
    editor: str
    suggestions_count: int = 0
    acceptances_count: int = 0
    lines_suggested: int = 0
    lines_accepted: int = 0
    active_users: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.language, self.editor)


@dataclass
class UsageRecord:
    day: str
    total_suggestions_count: int = 0
    total_acceptances_count: int = 0
    total_lines_suggested: int = 0
    total_lines_accepted: int = 0
    total_active_users: int = 0
    total_chat_acceptances: int = 0
    total_chat_turns: int = 0
    total_active_chat_users: int = 0
    breakdown: list[Breakdown] = field(default_factory=list)
    time_frame_week: str | None = None
    time_frame_month: str | None = None
    time_frame_display: str | None = None


@dataclass
class Seat:
    user_id: int
    user_login: str
    assignment_date: str | None = None
    last_activity_at: str | None = None
    last_activity_editor: str | None = None
    created_at: str | None = None

    @property
    def editor_display(self) -> str:
        if not self.last_activity_editor:
            return "-"
        name, _, version = self.last_activity_editor.partition("/")
        return f"{name} ({version})" if version else name


@dataclass
class SeatBreakdown:
    total: int = 0
    active_this_cycle: int = 0
    inactive_this_cycle: int = 0
    added_this_cycle: int = 0
    pending_invitation: int = 0
    pending_cancellation: int = 0


@dataclass
class SeatManagementSummary:
    seat_breakdown: SeatBreakdown = field(default_factory=SeatBreakdown)
    seat_management_setting: str = ""
    public_code_suggestions: str = ""
    ide_chat: str = ""
    platform_chat: str = ""
    cli: str = ""
    plan_type: str = ""


@dataclass
class SeatSnapshot:
    id: str
    date: str
    last_update: str
    scope: Scope
    total_seats: int
    seats: list[Seat] = field(default_factory=list)
    summary: SeatManagementSummary = field(default_factory=SeatManagementSummary)


@dataclass
class JobResult:
    status: StatusKind
    value: object = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == StatusKind.OK

    @classmethod
    def success(cls, value: object) -> "JobResult":
        return cls(status=StatusKind.OK, value=value)

    @classmethod
    def failure(cls, *errors: str) -> "JobResult":
        return cls(status=StatusKind.ERROR, errors=list(errors))
