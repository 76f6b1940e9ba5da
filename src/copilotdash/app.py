from __future__ import annotations

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, SelectionList

from copilotdash.config import Config, resolve_scope
from copilotdash.jobs import open_store
from copilotdash.models import TimeFrame
from copilotdash.repository import MetricsRepository, SeatsRepository
from copilotdash.state import DashboardState
from copilotdash.ui.theme import APP_CSS
from copilotdash.ui.widgets import SeatsCard, UsageTable


class CopilotDashApp(App):
    CSS = APP_CSS
    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "reload", "Reload"),
        Binding("d", "time_frame('daily')", "Daily"),
        Binding("w", "time_frame('weekly')", "Weekly"),
        Binding("m", "time_frame('monthly')", "Monthly"),
        Binding("x", "reset_filters", "Reset filters"),
    ]

    def __init__(self, cfg: Config):
        super().__init__()
        self.cfg = cfg
        self.scope = resolve_scope(cfg)
        self.store = open_store(cfg)
        self.metrics = MetricsRepository(self.store, window_days=cfg.dashboard.window_days)
        self.seats = SeatsRepository(self.store)
        self.state = DashboardState()
        self._unsubscribe = self.state.subscribe(self._render_state)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="body"):
            with Vertical(id="sidebar"):
                yield SelectionList[str](id="languages")
                yield SelectionList[str](id="editors")
            with Vertical(id="main"):
                yield SeatsCard(id="seats")
                yield UsageTable(id="usage")
        yield Footer()

    def on_mount(self) -> None:
        self.title = f"Copilot usage: {self.scope.name}"
        self.query_one("#languages", SelectionList).border_title = "Languages"
        self.query_one("#editors", SelectionList).border_title = "Editors"
        self.reload()
        self.set_interval(max(30, self.cfg.dashboard.refresh_seconds), self.reload)

    def on_unmount(self) -> None:
        self._unsubscribe()
        self.store.close()

    def reload(self) -> None:
        records = self.metrics.query_range(self.scope)
        snapshot = self.seats.latest(self.scope)
        if self.state.refresh(records, snapshot.summary if snapshot else None, scope=self.scope):
            self._fill_facets()

    def _fill_facets(self) -> None:
        for widget_id, items in (("#languages", self.state.languages), ("#editors", self.state.editors)):
            widget = self.query_one(widget_id, SelectionList)
            widget.clear_options()
            widget.add_options([(item.value, item.value, item.is_selected) for item in items])

    def _render_state(self, state: DashboardState) -> None:
        self.sub_title = f"{state.time_frame.value} · {len(state.filtered_data)} rows"
        self.query_one(SeatsCard).render_summary(state.seat_management, title=f"Seats · {self.scope.name}")
        self.query_one(UsageTable).render_buckets(state.filtered_data)

    def action_reload(self) -> None:
        self.reload()

    def action_time_frame(self, value: str) -> None:
        self.state.set_time_frame(TimeFrame(value))

    def action_reset_filters(self) -> None:
        self.state.reset_filters()
        self._fill_facets()

    @on(SelectionList.SelectionToggled, "#languages")
    def on_language_toggled(self, event: SelectionList.SelectionToggled) -> None:
        self.state.toggle_language(event.selection.value)

    @on(SelectionList.SelectionToggled, "#editors")
    def on_editor_toggled(self, event: SelectionList.SelectionToggled) -> None:
        self.state.toggle_editor(event.selection.value)


def run_dashboard(cfg: Config) -> None:
    app = CopilotDashApp(cfg)
    app.run()
