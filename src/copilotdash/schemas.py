"""Wire schemas for the GitHub Copilot endpoints.

Payloads are validated here, at the ingestion boundary, and converted to the
dataclasses in ``copilotdash.models`` before anything else sees them.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from copilotdash.models import (
    Breakdown,
    Seat,
    SeatBreakdown,
    SeatManagementSummary,
    UsageRecord,
)


class BreakdownPayload(BaseModel):
    language: str
    editor: str
    suggestions_count: int = Field(default=0, ge=0)
    acceptances_count: int = Field(default=0, ge=0)
    lines_suggested: int = Field(default=0, ge=0)
    lines_accepted: int = Field(default=0, ge=0)
    active_users: int = Field(default=0, ge=0)

    def to_breakdown(self) -> Breakdown:
        return Breakdown(**self.model_dump())


class UsagePayload(BaseModel):
    day: str
    total_suggestions_count: int = Field(default=0, ge=0)
    total_acceptances_count: int = Field(default=0, ge=0)
    total_lines_suggested: int = Field(default=0, ge=0)
    total_lines_accepted: int = Field(default=0, ge=0)
    total_active_users: int = Field(default=0, ge=0)
    total_chat_acceptances: int = Field(default=0, ge=0)
    total_chat_turns: int = Field(default=0, ge=0)
    total_active_chat_users: int = Field(default=0, ge=0)
    breakdown: list[BreakdownPayload] = Field(default_factory=list)

    @field_validator("day")
    @classmethod
    def _day_is_iso_date(cls, value: str) -> str:
        # Timestamps like 2024-01-06T00:00:00Z collapse to their calendar day.
        return date.fromisoformat(value[:10]).isoformat()

    @field_validator("breakdown", mode="before")
    @classmethod
    def _null_breakdown(cls, value):
        return value or []

    def to_record(self) -> UsageRecord:
        data = self.model_dump(exclude={"breakdown"})
        return UsageRecord(**data, breakdown=[b.to_breakdown() for b in self.breakdown])


class AssigneePayload(BaseModel):
    id: int
    login: str


class SeatPayload(BaseModel):
    assignee: AssigneePayload | None = None
    user_id: int | None = None
    user_login: str | None = None
    assignment_date: str | None = None
    last_activity_at: str | None = None
    last_activity_editor: str | None = None
    created_at: str | None = None

    def to_seat(self) -> Seat:
        user_id = self.user_id if self.user_id is not None else (self.assignee.id if self.assignee else 0)
        user_login = self.user_login or (self.assignee.login if self.assignee else "")
        return Seat(
            user_id=user_id,
            user_login=user_login,
            assignment_date=self.assignment_date or self.created_at,
            last_activity_at=self.last_activity_at,
            last_activity_editor=self.last_activity_editor,
            created_at=self.created_at,
        )


class EnterpriseSeatsPage(BaseModel):
    total_seats: int = Field(default=0, ge=0)
    seats: list[SeatPayload] = Field(default_factory=list)


class SeatBreakdownPayload(BaseModel):
    total: int = 0
    active_this_cycle: int = 0
    inactive_this_cycle: int = 0
    added_this_cycle: int = 0
    pending_invitation: int = 0
    pending_cancellation: int = 0


class OrgBillingPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    seat_breakdown: SeatBreakdownPayload = Field(default_factory=SeatBreakdownPayload)
    seat_management_setting: str | None = ""
    public_code_suggestions: str | None = ""
    ide_chat: str | None = ""
    platform_chat: str | None = ""
    cli: str | None = ""
    plan_type: str | None = ""

    def to_summary(self) -> SeatManagementSummary:
        return SeatManagementSummary(
            seat_breakdown=SeatBreakdown(**self.seat_breakdown.model_dump()),
            seat_management_setting=self.seat_management_setting or "",
            public_code_suggestions=self.public_code_suggestions or "",
            ide_chat=self.ide_chat or "",
            platform_chat=self.platform_chat or "",
            cli=self.cli or "",
            plan_type=self.plan_type or "",
        )
