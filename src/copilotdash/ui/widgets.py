from __future__ import annotations

from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from textual.widgets import DataTable, Static

from copilotdash.models import COUNTER_FIELDS, SeatManagementSummary, UsageRecord


def _bar_color(pct: float) -> str:
    if pct >= 60.0:
        return "green"
    if pct >= 30.0:
        return "yellow"
    return "red"


def bar(value: float | None, width: int = 30) -> Text:
    if value is None:
        return Text("── no data ──", style="dim")
    shown = max(0.0, value)
    bar_pct = min(100.0, shown)
    filled = int(round((bar_pct / 100.0) * width))
    empty = width - filled
    color = _bar_color(shown)

    text = Text()
    text.append("━" * filled, style=f"bold {color}")
    text.append("╌" * empty, style="bright_black")
    text.append(f"  {shown:5.1f}%", style=f"bold {color}")
    return text


def fmt_num(value: int | float | None) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:,.0f}"
    return f"{value:,}"


def bucket_totals(record: UsageRecord) -> dict[str, int]:
    """Counters summed over the bucket's (possibly filtered) breakdown entries."""
    return {name: sum(getattr(e, name) for e in record.breakdown) for name in COUNTER_FIELDS}


def acceptance_pct(totals: dict[str, int]) -> float | None:
    if not totals["suggestions_count"]:
        return None
    return totals["acceptances_count"] / totals["suggestions_count"] * 100.0


def seats_panel(summary: SeatManagementSummary | None, title: str = "Seats") -> Panel:
    table = Table.grid(expand=True, padding=(0, 1))
    table.add_column("label", ratio=1, no_wrap=True, style="bold bright_white")
    table.add_column("value", ratio=4)

    if summary is None:
        table.add_row("Status", Text("no seat snapshot stored; run `copilotdash refresh-seats`", style="dim"))
        return Panel(table, title=f"[bold bright_white] {title.upper()} [/]", border_style="#f2c94c", padding=(1, 2))

    b = summary.seat_breakdown
    active_pct = b.active_this_cycle / b.total * 100.0 if b.total else None

    table.add_row(Text("Total", style="bold cyan"), Text(fmt_num(b.total), style="bright_white"))
    table.add_row(Text("Active", style="bold cyan"), bar(active_pct))
    table.add_row(
        Text("  counts", style="dim"),
        Text(f"{fmt_num(b.active_this_cycle)} active / {fmt_num(b.inactive_this_cycle)} inactive", style="bright_white"),
    )
    table.add_row(
        Text("Pending", style="bold magenta"),
        Text(
            f"added {b.added_this_cycle}  invites {b.pending_invitation}  cancellations {b.pending_cancellation}",
            style="bright_white",
        ),
    )

    policies = [
        ("Plan", summary.plan_type),
        ("Management", summary.seat_management_setting),
        ("Public code", summary.public_code_suggestions),
        ("IDE chat", summary.ide_chat),
        ("Platform chat", summary.platform_chat),
        ("CLI", summary.cli),
    ]
    shown = [(label, value) for label, value in policies if value]
    if shown:
        table.add_row("", Text())
        for label, value in shown:
            table.add_row(Text(label, style="dim"), Text(value, style="bright_white"))

    return Panel(table, title=f"[bold bright_white] {title.upper()} [/]", border_style="#2be38f", padding=(1, 2))


class SeatsCard(Static):
    def render_summary(self, summary: SeatManagementSummary | None, title: str = "Seats") -> None:
        self.update(seats_panel(summary, title))


class UsageTable(DataTable):
    COLUMNS = ("Period", "Suggestions", "Acceptances", "Lines suggested", "Lines accepted", "Acceptance")

    def on_mount(self) -> None:
        self.cursor_type = "row"

    def render_buckets(self, buckets: list[UsageRecord]) -> None:
        if not self.columns:
            self.add_columns(*self.COLUMNS)
        self.clear()
        for record in buckets:
            totals = bucket_totals(record)
            pct = acceptance_pct(totals)
            self.add_row(
                record.time_frame_display or record.day,
                fmt_num(totals["suggestions_count"]),
                fmt_num(totals["acceptances_count"]),
                fmt_num(totals["lines_suggested"]),
                fmt_num(totals["lines_accepted"]),
                "-" if pct is None else f"{pct:.1f}%",
            )
