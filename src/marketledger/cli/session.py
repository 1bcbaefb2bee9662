"""Shared CLI plumbing: load the ledger from the journal, run one command, persist."""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Iterator

import typer

from marketledger.config.settings import Settings
from marketledger.errors import LedgerError
from marketledger.ledger.engine import MarketLedgerEngine
from marketledger.replay.engine import ReplayError, replay_from_log
from marketledger.storage.db import get_connection, init_schema
from marketledger.storage.event_log import EventJournal
from marketledger.storage.markets import save_snapshot


@contextmanager
def ledger_session(settings: Settings) -> Iterator[MarketLedgerEngine]:
    """Yield an engine rebuilt from the journal, with new events appended to it.

    LedgerError raised by the command body is reported and turned into exit code 1.
    """
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        try:
            engine = replay_from_log(conn, settings=settings, go_live=True)
        except ReplayError as e:
            typer.echo(f"Error [replay]: {e}", err=True)
            raise typer.Exit(1) from e
        engine.subscribe(EventJournal(conn))
        try:
            yield engine
        except LedgerError as e:
            typer.echo(f"Error [{e.code}]: {e.message}", err=True)
            raise typer.Exit(1) from e
        finally:
            save_snapshot(conn, engine)
    finally:
        conn.close()


class Side(str, Enum):
    yes = "yes"
    no = "no"

    @property
    def as_bool(self) -> bool:
        return self is Side.yes
