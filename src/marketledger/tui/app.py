"""Textual TUI dashboard - ledger summary and market table."""

from __future__ import annotations

from typing import Any

from textual.app import App, ComposeResult
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Static

from marketledger.ledger.engine import MarketLedgerEngine
from marketledger.models import MarketState
from marketledger.units import format_amount


class SummaryPanel(Static):
    """Market count, open markets and escrow held."""

    markets = reactive(0)
    open_markets = reactive(0)
    escrow = reactive("0")

    def render(self) -> str:
        return (
            f"[bold]Markets[/] {self.markets}  |  "
            f"Open: {self.open_markets}  |  "
            f"Escrow: {self.escrow}"
        )


class MarketTable(DataTable):
    """Table of markets with state, pools and escrow."""

    COLUMNS = ("ID", "State", "Yes pool", "No pool", "Escrow", "Question")

    def on_mount(self) -> None:
        self.add_columns(*self.COLUMNS)

    def refresh_rows(self, engine: MarketLedgerEngine) -> None:
        self.clear()
        now = engine.clock.now()
        for m in engine.list_markets():
            question = m.question[:40] + "..." if len(m.question) > 40 else m.question
            self.add_row(
                str(m.market_id),
                m.state(now).value,
                format_amount(m.total_yes_amount),
                format_amount(m.total_no_amount),
                format_amount(m.escrow_balance),
                question,
            )


class LedgerTUI(App[None]):
    """Market ledger TUI - read-only view of the journal."""

    TITLE = "Market Ledger"
    BINDINGS = [("q", "quit", "Quit"), ("r", "reload", "Reload")]

    def __init__(self, settings: Any, refresh_sec: float = 2.0, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._settings = settings
        self._refresh_sec = refresh_sec

    def compose(self) -> ComposeResult:
        yield Header()
        yield SummaryPanel(id="summary")
        yield MarketTable(id="markets")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh()
        self.set_interval(self._refresh_sec, self._refresh)

    def action_reload(self) -> None:
        self._refresh()

    def _refresh(self) -> None:
        engine = load_engine(self._settings)
        now = engine.clock.now()
        markets = engine.list_markets()
        summary = self.query_one(SummaryPanel)
        summary.markets = len(markets)
        summary.open_markets = sum(1 for m in markets if m.state(now) is MarketState.OPEN)
        summary.escrow = format_amount(engine.escrow_total)
        self.query_one(MarketTable).refresh_rows(engine)


def load_engine(settings: Any) -> MarketLedgerEngine:
    """Rebuild the ledger from the journal through a read-only connection."""
    from marketledger.replay.engine import replay_from_log
    from marketledger.storage.db import get_connection

    conn = get_connection(settings.db_path, read_only=True)
    try:
        return replay_from_log(conn, settings=settings, go_live=True)
    finally:
        conn.close()


def run_tui(settings: Any, refresh_sec: float = 2.0) -> None:
    """Entry point: check the journal exists and run the TUI."""
    from pathlib import Path

    if not Path(settings.db_path).exists():
        raise SystemExit("No ledger database yet. Run: mledger markets create ...")
    app = LedgerTUI(settings, refresh_sec=refresh_sec)
    app.run()
