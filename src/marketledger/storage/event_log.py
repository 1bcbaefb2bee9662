"""Ledger event append and query - event sourcing log."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Iterator

import structlog

from marketledger.models import LedgerEvent

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)


def append_event(conn: DuckDBPyConnection, event: LedgerEvent) -> None:
    """Append a single ledger event."""
    conn.execute(
        """
        INSERT INTO ledger_events (event_type, market_id, account, ts, payload)
        VALUES (?, ?, ?, ?, ?)
        """,
        [event.event_type, event.market_id, event.account, event.ts, json.dumps(event.payload)],
    )


def stream_events(
    conn: DuckDBPyConnection,
    market_id: int | None = None,
    start_ts: int | None = None,
    end_ts: int | None = None,
) -> Iterator[LedgerEvent]:
    """Yield logged events in append order, optionally filtered by market and time."""
    conditions = []
    params: list[Any] = []
    if market_id is not None:
        conditions.append("market_id = ?")
        params.append(market_id)
    if start_ts is not None:
        conditions.append("ts >= ?")
        params.append(start_ts)
    if end_ts is not None:
        conditions.append("ts <= ?")
        params.append(end_ts)
    where = " AND ".join(conditions) if conditions else "1=1"
    sql = f"SELECT id, event_type, market_id, account, ts, payload FROM ledger_events WHERE {where} ORDER BY id ASC"
    rows = conn.execute(sql, params).fetchall()
    for row_id, event_type, mid, account, ts, payload_json in rows:
        payload = json.loads(payload_json) if isinstance(payload_json, str) else payload_json
        yield LedgerEvent(
            seq=row_id,
            event_type=event_type,
            market_id=mid,
            account=account,
            ts=ts,
            payload=payload or {},
        )


def log_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Return event log statistics: total count, min/max ts, count by event type."""
    total = conn.execute("SELECT COUNT(*) FROM ledger_events").fetchone()[0]
    range_row = conn.execute("SELECT MIN(ts), MAX(ts) FROM ledger_events").fetchone()
    min_ts, max_ts = range_row[0], range_row[1]
    by_type = conn.execute(
        "SELECT event_type, COUNT(*) AS cnt FROM ledger_events GROUP BY event_type ORDER BY cnt DESC"
    ).fetchall()
    return {
        "total_events": total,
        "min_ts": min_ts,
        "max_ts": max_ts,
        "by_type": [{"event_type": r[0], "count": r[1]} for r in by_type],
    }


class EventJournal:
    """Engine listener that appends every committed event to the log."""

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self._conn = conn
        self.appended = 0

    def __call__(self, event: LedgerEvent) -> None:
        append_event(self._conn, event)
        self.appended += 1
        log.debug("journal_append", event_type=event.event_type, market_id=event.market_id)
