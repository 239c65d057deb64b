#!/usr/bin/env python3
"""examplan TUI: today's study slots and the daily check-in, powered by Textual."""

from __future__ import annotations

import logging
import sys

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Button, DataTable, Footer, Header, Label, Select, Static

from examplan import (
    CHECKIN_QUESTIONS,
    SlotError,
    configure_logging,
    current_period,
    is_due,
    load_config,
    local_store,
    lock_slot,
    migrate,
    now_local,
    reconcile,
    skip_checkin,
    submit_checkin,
    unlock_slot,
    well_score,
    well_score_trend,
    workspace_root,
)
from examplan.checkin import load_eligibility_settings, load_local_records, save_local_records
from examplan.models import calendar_from_dict, calendar_to_dict
from examplan.planner import CALENDAR_KEY


logger = logging.getLogger(__name__)

PERIOD_LABELS = {"morning": "Morgen", "evening": "Abend"}


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#main-layout {
    height: 1fr;
}

#left-pane {
    width: 1fr;
    min-width: 30;
    border-right: tall $primary-background-darken-2;
    padding: 0 1;
}

#right-pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

#slots-table {
    height: 1fr;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

.question-row {
    height: auto;
    margin: 0 0 1 0;
}

.question-label {
    width: 1fr;
    height: auto;
    padding: 1 1 0 0;
}

.question-row Select {
    width: 1fr;
}

#checkin-buttons {
    height: auto;
    margin: 1 0 0 0;
}

#checkin-state {
    height: auto;
    padding: 0 1;
    color: $text-muted;
}

#score-bar {
    height: auto;
    padding: 1 1;
    border: tall $primary-background-darken-2;
}
"""


# ── Widgets ────────────────────────────────────────────────────


class QuestionRow(Horizontal):
    """One check-in question with a 1-5 answer select."""

    def __init__(self, question: dict, **kwargs) -> None:
        super().__init__(**kwargs)
        self.question = question

    def compose(self) -> ComposeResult:
        yield Label(self.question["question"], classes="question-label")
        yield Select(
            [(label, value) for value, label in self.question["options"]],
            prompt="…",
            id=f"q-{self.question['id']}",
        )

    def on_mount(self) -> None:
        self.add_class("question-row")


# ── Main app ───────────────────────────────────────────────────


class ExamPlanApp(App):
    """examplan: study slots and daily check-in."""

    TITLE = "examplan"
    CSS = CSS
    AUTO_FOCUS = None

    BINDINGS = [
        Binding("l", "toggle_lock", "Lock/Unlock"),
        Binding("c", "submit_checkin", "Check-in"),
        Binding("x", "skip_checkin", "Skip"),
        Binding("r", "reload", "Reload"),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._config = load_config()
        self._store = local_store()
        self._today = now_local().date().isoformat()
        self._period = "morning"
        self._due = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            Vertical(
                Label("Heute", classes="section-title"),
                DataTable(id="slots-table", cursor_type="row"),
                id="left-pane",
            ),
            VerticalScroll(
                Label("Check-in", classes="section-title"),
                Static(id="checkin-state"),
                Vertical(
                    *[QuestionRow(q) for q in CHECKIN_QUESTIONS],
                    id="questions",
                ),
                Horizontal(
                    Button("Speichern", id="btn-submit", variant="primary"),
                    Button("Überspringen", id="btn-skip"),
                    id="checkin-buttons",
                ),
                Static(id="score-bar"),
                id="right-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        table: DataTable = self.query_one("#slots-table", DataTable)
        table.add_columns("#", "Status", "Thema", "Rechtsgebiet")
        self._load_data()

    # ── Data ───────────────────────────────────────────────────

    def _load_data(self) -> None:
        now = now_local()
        self._today = now.date().isoformat()
        self._load_slots()
        self._load_checkin(now.hour)

    def _load_slots(self) -> None:
        table: DataTable = self.query_one("#slots-table", DataTable)
        table.clear()
        calendar = calendar_from_dict(self._store.get(CALENDAR_KEY) or {})
        slots = calendar.get(self._today, [])
        if not slots:
            self.sub_title = f"{self._today}  (kein Lernplan für heute)"
            return
        self.sub_title = self._today
        for slot in slots:
            title = slot.title or ("(gesperrt)" if slot.state == "locked" else "")
            table.add_row(str(slot.position), slot.state, title, slot.category or "", key=str(slot.position))

    @work(exclusive=True)
    async def _load_checkin(self, hour: int) -> None:
        settings = load_eligibility_settings(self._store)
        merged = await reconcile(load_local_records(self._store), None)
        self._period = current_period(settings, hour)
        self._due = is_due(
            merged,
            settings,
            self._config.checkin_activated,
            self._config.daily_prompt_count,
            hour,
            self._today,
        )

        label = PERIOD_LABELS[self._period]
        state = self.query_one("#checkin-state", Static)
        if self._due:
            state.update(f"{label}-Check-in ist fällig.")
        else:
            state.update(f"Kein Check-in fällig ({label}).")
        self.query_one("#questions", Vertical).display = self._due
        self.query_one("#checkin-buttons", Horizontal).display = self._due

        score = well_score(merged, self._today)
        trend = well_score_trend(merged, self._today)
        score_text = "-" if score is None else f"{score}"
        trend_text = f"{trend:+d}" if trend else "±0"
        self.query_one("#score-bar", Static).update(f"Well-Score (7 Tage): {score_text}   Trend: {trend_text}")

    def _collect_answers(self) -> dict[str, int] | None:
        answers = {}
        for q in CHECKIN_QUESTIONS:
            value = self.query_one(f"#q-{q['id']}", Select).value
            if not isinstance(value, int):
                return None
            answers[q["id"]] = value
        return answers

    # ── Actions ────────────────────────────────────────────────

    @on(Button.Pressed, "#btn-submit")
    def _on_submit(self) -> None:
        self.action_submit_checkin()

    @on(Button.Pressed, "#btn-skip")
    def _on_skip(self) -> None:
        self.action_skip_checkin()

    def action_submit_checkin(self) -> None:
        if not self._due:
            self.notify("Kein Check-in fällig.", severity="warning")
            return
        answers = self._collect_answers()
        if answers is None:
            self.notify("Bitte alle Fragen beantworten.", severity="warning")
            return
        records = submit_checkin(load_local_records(self._store), answers, self._period, self._today)
        save_local_records(self._store, records)
        self.notify("Check-in gespeichert.", title="Check-in")
        self._load_data()

    def action_skip_checkin(self) -> None:
        if not self._due:
            return
        records = skip_checkin(load_local_records(self._store), self._period, self._today)
        save_local_records(self._store, records)
        self.notify("Check-in übersprungen.", title="Check-in")
        self._load_data()

    def action_toggle_lock(self) -> None:
        table: DataTable = self.query_one("#slots-table", DataTable)
        if table.row_count == 0:
            return
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        position = int(row_key.value)
        calendar = calendar_from_dict(self._store.get(CALENDAR_KEY) or {})
        slots = {s.position: s for s in calendar.get(self._today, [])}
        try:
            if slots[position].state == "locked":
                unlock_slot(calendar, self._today, position)
            else:
                lock_slot(calendar, self._today, position)
        except SlotError as e:
            self.notify(str(e), title="Slot", severity="warning")
            return
        self._store.set(CALENDAR_KEY, calendar_to_dict(calendar))
        self._load_slots()

    def action_reload(self) -> None:
        self._load_data()

    def action_quit_app(self) -> None:
        self.exit()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    if not root.exists():
        print(f"Workspace not found: {root}")
        print("Set EXAMPLAN_ROOT to your workspace directory.")
        sys.exit(1)

    configure_logging()
    result = migrate(local_store(root))
    if result.ran:
        logger.info("Local store migrated to version %d", result.version)

    app = ExamPlanApp()
    app.run()


if __name__ == "__main__":
    main()
