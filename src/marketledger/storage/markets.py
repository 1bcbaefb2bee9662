"""Market and bet snapshot persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from marketledger.models import Bet, Market

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from marketledger.ledger.engine import MarketLedgerEngine

_MARKET_COLUMNS = [
    "market_id",
    "question",
    "creator",
    "created_at",
    "end_time",
    "resolved",
    "outcome",
    "resolved_at",
    "total_yes_amount",
    "total_no_amount",
    "escrow_balance",
    "emergency_withdrawn",
]


def upsert_market(conn: DuckDBPyConnection, market: Market) -> None:
    """Insert or replace a market in the markets table."""
    # Amounts can exceed BIGINT; pass as text and let DuckDB cast.
    conn.execute(
        """
        INSERT INTO markets (market_id, question, creator, created_at, end_time, resolved, outcome, resolved_at,
                             total_yes_amount, total_no_amount, escrow_balance, emergency_withdrawn)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, CAST(? AS HUGEINT), CAST(? AS HUGEINT), CAST(? AS HUGEINT), ?)
        ON CONFLICT (market_id) DO UPDATE SET
            resolved = excluded.resolved,
            outcome = excluded.outcome,
            resolved_at = excluded.resolved_at,
            total_yes_amount = excluded.total_yes_amount,
            total_no_amount = excluded.total_no_amount,
            escrow_balance = excluded.escrow_balance,
            emergency_withdrawn = excluded.emergency_withdrawn
        """,
        [
            market.market_id,
            market.question,
            market.creator,
            market.created_at,
            market.end_time,
            market.resolved,
            market.outcome,
            market.resolved_at,
            str(market.total_yes_amount),
            str(market.total_no_amount),
            str(market.escrow_balance),
            market.emergency_withdrawn,
        ],
    )


def upsert_bet(conn: DuckDBPyConnection, bet: Bet) -> None:
    conn.execute(
        """
        INSERT INTO bets (market_id, participant, amount, prediction, placed_at, claimed)
        VALUES (?, ?, CAST(? AS HUGEINT), ?, ?, ?)
        ON CONFLICT (market_id, participant) DO UPDATE SET claimed = excluded.claimed
        """,
        [bet.market_id, bet.participant, str(bet.amount), bet.prediction, bet.placed_at, bet.claimed],
    )


def save_snapshot(conn: DuckDBPyConnection, engine: MarketLedgerEngine) -> int:
    """Write every market and bet of the engine. Returns the number of markets written."""
    markets = engine.list_markets()
    for m in markets:
        upsert_market(conn, m)
        for b in engine.bets_for_market(m.market_id):
            upsert_bet(conn, b)
    return len(markets)


def list_markets(conn: DuckDBPyConnection, unresolved_only: bool = False) -> list[dict]:
    """List stored markets as list of dicts, in id order."""
    where = "WHERE resolved = false" if unresolved_only else ""
    rows = conn.execute(f"SELECT {', '.join(_MARKET_COLUMNS)} FROM markets {where} ORDER BY market_id").fetchall()
    return [dict(zip(_MARKET_COLUMNS, r)) for r in rows]


def count_bets(conn: DuckDBPyConnection, market_id: int) -> int:
    return conn.execute("SELECT COUNT(*) FROM bets WHERE market_id = ?", [market_id]).fetchone()[0]
