from __future__ import annotations

import argparse
import json
import platform
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from copilotdash.app import run_dashboard
from copilotdash.config import CONFIG_PATH, Config, load_config, resolve_scope, save_config, set_config_value
from copilotdash.errors import CopilotDashError
from copilotdash.jobs import ingest_usage, open_store, refresh_seats, result_to_json, run_scheduled
from copilotdash.logs import configure_logging
from copilotdash.models import TimeFrame
from copilotdash.repository import MetricsRepository, SeatsRepository
from copilotdash.state import DashboardState
from copilotdash.ui.widgets import acceptance_pct, bucket_totals, fmt_num, seats_panel


def _render_usage(state: DashboardState, title: str) -> Table:
    table = Table(title=title, expand=True, header_style="bold bright_white", border_style="#7184d6")
    table.add_column("Period", style="bold cyan", no_wrap=True)
    table.add_column("Suggestions", justify="right")
    table.add_column("Acceptances", justify="right")
    table.add_column("Lines accepted", justify="right")
    table.add_column("Acceptance", justify="right")
    table.add_column("Languages", style="dim")

    for record in state.filtered_data:
        totals = bucket_totals(record)
        pct = acceptance_pct(totals)
        languages = sorted({e.language for e in record.breakdown})
        table.add_row(
            record.time_frame_display or record.day,
            fmt_num(totals["suggestions_count"]),
            fmt_num(totals["acceptances_count"]),
            fmt_num(totals["lines_accepted"]),
            "-" if pct is None else f"{pct:.1f}%",
            ", ".join(languages[:4]) + (" …" if len(languages) > 4 else ""),
        )
    if not state.filtered_data:
        table.add_row(Text("no data for the selected filters", style="dim"), "", "", "", "", "")
    return table


def _render_seat_list(seats) -> Table:
    table = Table(expand=True, header_style="bold bright_white", border_style="#7184d6")
    table.add_column("#", justify="right", style="dim")
    table.add_column("User", style="bold")
    table.add_column("Assigned")
    table.add_column("Last activity")
    table.add_column("Editor")
    for i, seat in enumerate(seats, start=1):
        table.add_row(
            str(i),
            seat.user_login,
            (seat.assignment_date or "-")[:10],
            (seat.last_activity_at or "-")[:10],
            seat.editor_display,
        )
    return table


def _cmd_metrics(cfg: Config, args: argparse.Namespace, console: Console) -> int:
    scope = resolve_scope(cfg)
    with open_store(cfg) as store:
        records = MetricsRepository(store, window_days=cfg.dashboard.window_days).query_range(
            scope, args.start, args.end
        )
        snapshot = SeatsRepository(store).latest(scope)

    state = DashboardState()
    state.init(records, snapshot.summary if snapshot else None, scope=scope)
    state.set_time_frame(TimeFrame(args.time_frame))
    for language in args.language:
        state.toggle_language(language)
    for editor in args.editor:
        state.toggle_editor(editor)

    console.print(_render_usage(state, f"Copilot usage · {scope.name} · {state.time_frame.value}"))
    return 0


def _cmd_seats(cfg: Config, args: argparse.Namespace, console: Console) -> int:
    scope = resolve_scope(cfg)
    with open_store(cfg) as store:
        repo = SeatsRepository(store)
        snapshot = repo.get(scope, args.date) if args.date else repo.latest(scope)

    console.print(seats_panel(snapshot.summary if snapshot else None, title=f"Seats · {scope.name}"))
    if snapshot and snapshot.seats:
        console.print(_render_seat_list(snapshot.seats))
    if snapshot:
        console.print(Text(f"snapshot {snapshot.id} · updated {snapshot.last_update}", style="dim"))
    return 0


def _cmd_health(cfg: Config, config_path: Path) -> int:
    checks: dict[str, object] = {
        "config": str(config_path),
        "store": cfg.store.path,
        "platform": platform.platform(),
    }
    try:
        checks["scope"] = str(resolve_scope(cfg).kind.value)
    except CopilotDashError as exc:
        checks["scope"] = f"error: {exc}"
    try:
        with open_store(cfg) as store:
            checks["store_ok"] = store.ping()
    except CopilotDashError as exc:
        checks["store_ok"] = False
        checks["store_error"] = str(exc)
    print(json.dumps(checks, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="copilotdash")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH)
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("dashboard")

    metrics = sub.add_parser("metrics")
    metrics.add_argument("--start", type=date.fromisoformat)
    metrics.add_argument("--end", type=date.fromisoformat)
    metrics.add_argument("--time-frame", choices=[t.value for t in TimeFrame], default=TimeFrame.DAILY.value)
    metrics.add_argument("--language", action="append", default=[])
    metrics.add_argument("--editor", action="append", default=[])

    seats = sub.add_parser("seats")
    seats.add_argument("--date", type=date.fromisoformat)

    sub.add_parser("ingest")
    sub.add_parser("refresh-seats")
    sub.add_parser("cron")
    sub.add_parser("health")

    config = sub.add_parser("config")
    config_sub = config.add_subparsers(dest="config_cmd")
    config_sub.add_parser("show")
    config_set = config_sub.add_parser("set")
    config_set.add_argument("key")
    config_set.add_argument("value")

    args = parser.parse_args(argv)
    cfg = load_config(args.config)
    configure_logging(cfg.logging.level, cfg.logging.json)

    cmd = args.cmd or "dashboard"
    console = Console()

    if cmd in {"ingest", "refresh-seats", "cron"}:
        if cmd == "ingest":
            result = ingest_usage(cfg)
            ok = result.ok
        elif cmd == "refresh-seats":
            result = refresh_seats(cfg)
            ok = result.ok
        else:
            result = run_scheduled(cfg)
            ok = all(r.ok for r in result.values())
        print(result_to_json(result))
        return 0 if ok else 1

    if cmd == "health":
        return _cmd_health(cfg, args.config)

    if cmd == "config":
        if args.config_cmd == "show":
            shown = asdict(cfg)
            if shown["github"]["token"]:
                shown["github"]["token"] = "***"
            print(json.dumps(shown, indent=2, default=str))
            return 0
        if args.config_cmd == "set":
            try:
                set_config_value(cfg, args.key, args.value)
            except ValueError as exc:
                parser.error(str(exc))
            save_config(cfg, args.config)
            print(f"updated {args.key}")
            return 0
        parser.error("config requires show or set")

    try:
        if cmd == "dashboard":
            run_dashboard(cfg)
            return 0
        if cmd == "metrics":
            return _cmd_metrics(cfg, args, console)
        if cmd == "seats":
            return _cmd_seats(cfg, args, console)
    except CopilotDashError as exc:
        console.print(Panel(Text(str(exc), style="bold red"), title="error", border_style="#ff5e6c"))
        return 1

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    sys.exit(main())
