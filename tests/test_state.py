from copilotdash.models import Breakdown, SeatManagementSummary, TimeFrame, UsageRecord
from copilotdash.schemas import UsagePayload
from copilotdash.state import DashboardState, bucket_records
from copilotdash.timeframe import apply_time_frame_labels


def _records(payload) -> list[UsageRecord]:
    return apply_time_frame_labels(UsagePayload.model_validate(item).to_record() for item in payload)


def _day(day: str, *entries: tuple[str, str, int], total: int = 0) -> UsageRecord:
    return UsageRecord(
        day=day,
        total_suggestions_count=total,
        breakdown=[Breakdown(language=lang, editor=ed, suggestions_count=n) for lang, ed, n in entries],
    )


def test_weekly_bucket_sums_matching_breakdowns() -> None:
    state = DashboardState()
    state.init([
        _day("2024-01-02", ("Python", "VSCode", 10), total=10),
        _day("2024-01-04", ("Python", "VSCode", 5), total=5),
    ])

    state.set_time_frame("weekly")

    assert len(state.filtered_data) == 1
    bucket = state.filtered_data[0]
    assert bucket.time_frame_display == "Jan 01"
    assert bucket.total_suggestions_count == 15
    assert len(bucket.breakdown) == 1
    assert bucket.breakdown[0].suggestions_count == 15


def test_init_extracts_facets_in_first_seen_order(usage_payload) -> None:
    state = DashboardState()
    summary = SeatManagementSummary()
    state.init(_records(usage_payload), summary)

    assert [i.value for i in state.languages] == ["python", "typescript", "go"]
    assert [i.value for i in state.editors] == ["vscode", "jetbrains", "neovim"]
    assert not any(i.is_selected for i in state.languages + state.editors)
    assert state.time_frame == TimeFrame.DAILY
    assert state.seat_management is summary
    assert [r.time_frame_display for r in state.filtered_data] == ["Jan 02", "Jan 03", "Jan 08"]


def test_selection_matching_no_entry_yields_empty_view() -> None:
    state = DashboardState()
    state.init([
        _day("2024-01-02", ("Python", "VSCode", 10)),
        _day("2024-01-03", ("Go", "Vim", 1)),
    ])

    state.toggle_language("Go")
    state.toggle_editor("VSCode")

    assert state.filtered_data == []
    assert len(state.records) == 2


def test_language_missing_from_records_is_not_a_facet() -> None:
    state = DashboardState()
    state.init([_day("2024-01-02", ("Python", "VSCode", 10))])

    state.toggle_language("Go")

    assert state.selected_languages == []
    assert len(state.filtered_data) == 1


def test_language_and_editor_filters_are_anded(usage_payload) -> None:
    state = DashboardState()
    state.init(_records(usage_payload))

    state.toggle_language("python")
    assert [r.day for r in state.filtered_data] == ["2024-01-02", "2024-01-03", "2024-01-08"]
    assert all(e.language == "python" for r in state.filtered_data for e in r.breakdown)

    state.toggle_editor("jetbrains")
    assert [r.day for r in state.filtered_data] == ["2024-01-08"]

    state.toggle_language("typescript")
    assert [r.day for r in state.filtered_data] == ["2024-01-02", "2024-01-08"]
    assert [(e.language, e.editor) for e in state.filtered_data[0].breakdown] == [("typescript", "jetbrains")]


def test_time_frame_change_rebuckets_from_loaded_records(usage_payload) -> None:
    state = DashboardState()
    state.init(_records(usage_payload))
    state.toggle_language("go")
    state.set_time_frame(TimeFrame.WEEKLY)
    assert [r.time_frame_display for r in state.filtered_data] == ["Jan 01"]

    state.toggle_language("go")
    assert [r.time_frame_display for r in state.filtered_data] == ["Jan 01", "Jan 08"]

    state.set_time_frame(TimeFrame.MONTHLY)
    (month,) = state.filtered_data
    assert month.time_frame_display == "Jan 24"
    assert month.total_suggestions_count == 260
    merged = {(e.language, e.editor): e.suggestions_count for e in month.breakdown}
    assert merged == {
        ("python", "vscode"): 140,
        ("typescript", "jetbrains"): 40,
        ("go", "neovim"): 30,
        ("python", "jetbrains"): 50,
    }

    state.set_time_frame(TimeFrame.DAILY)
    assert len(state.filtered_data) == 3
    assert state.records[0].breakdown[0].suggestions_count == 80


def test_reset_keeps_time_frame_and_reapply_is_deterministic(usage_payload) -> None:
    state = DashboardState()
    state.init(_records(usage_payload))
    state.set_time_frame("weekly")
    state.toggle_language("python")
    state.toggle_editor("vscode")
    before = state.filtered_data

    state.reset_filters()
    assert state.time_frame == TimeFrame.WEEKLY
    assert state.selected_languages == [] and state.selected_editors == []
    assert len(state.filtered_data) == 2

    state.toggle_language("python")
    state.toggle_editor("vscode")
    assert state.filtered_data == before


def test_unknown_facet_is_ignored_and_observers_fire_on_changes(usage_payload) -> None:
    seen: list[int] = []
    state = DashboardState()
    unsubscribe = state.subscribe(lambda s: seen.append(len(s.filtered_data)))

    state.init(_records(usage_payload))
    state.toggle_language("cobol")
    state.toggle_language("go")
    assert seen == [3, 1]

    unsubscribe()
    state.reset_filters()
    assert seen == [3, 1]


def test_bucket_records_does_not_mutate_input() -> None:
    records = [
        _day("2024-01-02", ("Python", "VSCode", 10)),
        _day("2024-01-03", ("Python", "VSCode", 5)),
    ]
    bucket_records(records, TimeFrame.WEEKLY)
    bucket_records(records, TimeFrame.DAILY)
    assert [r.breakdown[0].suggestions_count for r in records] == [10, 5]
    assert records[0].time_frame_display is None


def test_records_are_copies(usage_payload) -> None:
    state = DashboardState()
    state.init(_records(usage_payload))

    state.records[0].breakdown.clear()
    state.set_time_frame("daily")

    assert len(state.filtered_data) == 3
    assert state.records[0].breakdown


def test_refresh_with_same_records_keeps_choices(usage_payload) -> None:
    state = DashboardState()
    state.init(_records(usage_payload))
    state.set_time_frame("weekly")
    state.toggle_language("python")
    before = state.filtered_data
    summary = SeatManagementSummary()

    assert state.refresh(_records(usage_payload), summary) is False

    assert state.time_frame == TimeFrame.WEEKLY
    assert state.selected_languages == ["python"]
    assert state.filtered_data == before
    assert state.seat_management is summary


def test_refresh_with_new_records_keeps_surviving_selections(usage_payload) -> None:
    state = DashboardState()
    state.init(_records(usage_payload))
    state.set_time_frame("monthly")
    state.toggle_language("go")
    state.toggle_editor("vscode")

    changed = state.refresh([
        _day("2024-02-05", ("go", "neovim", 3)),
        _day("2024-02-06", ("rust", "vscode", 4)),
    ])

    assert changed is True
    assert [i.value for i in state.languages] == ["go", "rust"]
    assert state.selected_languages == ["go"]
    assert state.selected_editors == ["vscode"]
    assert state.time_frame == TimeFrame.MONTHLY
    assert state.filtered_data == []


def test_same_week_label_in_different_years_is_not_merged() -> None:
    records = [
        _day("2017-01-03", ("go", "vim", 1)),
        _day("2023-01-03", ("go", "vim", 2)),
    ]

    buckets = bucket_records(records, TimeFrame.WEEKLY)

    assert [b.time_frame_display for b in buckets] == ["Jan 02", "Jan 02"]
    assert [b.breakdown[0].suggestions_count for b in buckets] == [1, 2]
