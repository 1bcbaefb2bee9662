"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
-- Sequences for auto-increment IDs
CREATE SEQUENCE IF NOT EXISTS ledger_event_seq START 1;

-- Ledger operation log (append-only, event sourcing), replayed to rebuild state
CREATE TABLE IF NOT EXISTS ledger_events (
    id              BIGINT PRIMARY KEY DEFAULT nextval('ledger_event_seq'),
    event_type      VARCHAR NOT NULL,
    market_id       BIGINT,
    account         VARCHAR,
    ts              BIGINT NOT NULL,
    payload         JSON NOT NULL
);

-- Materialized market state (refreshed from the engine after each command)
CREATE TABLE IF NOT EXISTS markets (
    market_id           BIGINT PRIMARY KEY,
    question            VARCHAR NOT NULL,
    creator             VARCHAR NOT NULL,
    created_at          BIGINT NOT NULL,
    end_time            BIGINT NOT NULL,
    resolved            BOOLEAN NOT NULL,
    outcome             BOOLEAN,
    resolved_at         BIGINT,
    total_yes_amount    HUGEINT NOT NULL,
    total_no_amount     HUGEINT NOT NULL,
    escrow_balance      HUGEINT NOT NULL,
    emergency_withdrawn BOOLEAN NOT NULL
);

-- Materialized bets, one per (market, participant)
CREATE TABLE IF NOT EXISTS bets (
    market_id       BIGINT NOT NULL,
    participant     VARCHAR NOT NULL,
    amount          HUGEINT NOT NULL,
    prediction      BOOLEAN NOT NULL,
    placed_at       BIGINT NOT NULL,
    claimed         BOOLEAN NOT NULL,
    PRIMARY KEY (market_id, participant)
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager.
    Use read_only=True for viewers (TUI, API reads) while a writer holds the file."""
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables and sequences if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise
