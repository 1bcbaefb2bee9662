"""Deterministic replay from the ledger event log - state reconstruction and time control."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

import structlog

from marketledger.errors import LedgerError
from marketledger.ledger.clock import ReplayClock
from marketledger.ledger.engine import MarketLedgerEngine
from marketledger.ledger.wallet import InMemoryWallet
from marketledger.models import LedgerEvent
from marketledger.models import event as ev
from marketledger.storage.event_log import stream_events

if TYPE_CHECKING:
    from marketledger.config.settings import Settings

log = structlog.get_logger(__name__)


class ReplayError(Exception):
    """The log cannot be re-applied (corrupt, reordered or from a different rule set)."""


def apply_event(engine: MarketLedgerEngine, event: LedgerEvent) -> None:
    """Re-run the operation recorded by `event` against `engine`."""
    p = event.payload
    if event.event_type == ev.MARKET_CREATED:
        market_id = engine.create_market(p["question"], int(p["duration"]), event.account)
        if market_id != event.market_id:
            raise ReplayError(f"Market id mismatch: logged {event.market_id}, replayed {market_id}")
    elif event.event_type == ev.BET_PLACED:
        engine.place_bet(event.market_id, bool(p["prediction"]), int(p["amount"]), event.account)
    elif event.event_type == ev.MARKET_RESOLVED:
        engine.resolve_market(event.market_id, bool(p["outcome"]), event.account)
    elif event.event_type == ev.WINNINGS_CLAIMED:
        engine.claim_winnings(event.market_id, event.account)
    elif event.event_type == ev.PAYOUT_FAILED:
        engine.record_failed_payout(event.market_id, event.account)
    elif event.event_type == ev.EMERGENCY_WITHDRAWN:
        engine.emergency_withdraw(event.market_id, event.account)
    elif event.event_type == ev.ACCOUNT_FUNDED:
        engine.deposit(event.account, int(p["amount"]))
    else:
        raise ReplayError(f"Unknown event type: {event.event_type}")


def _new_engine(settings: Settings | None) -> MarketLedgerEngine:
    clock = ReplayClock()
    wallet = InMemoryWallet()
    if settings is not None:
        return MarketLedgerEngine.from_settings(settings, wallet=wallet, clock=clock)
    return MarketLedgerEngine(wallet=wallet, clock=clock)


def _step(engine: MarketLedgerEngine, event: LedgerEvent) -> None:
    # Wall time may step back between processes; never rewind the ledger.
    engine.clock.set(max(event.ts, engine.clock.now()))
    try:
        apply_event(engine, event)
    except (LedgerError, KeyError, TypeError, ValueError) as e:
        raise ReplayError(f"Event {event.seq} ({event.event_type}) failed on replay: {e}") from e


def replay_ledger(
    events: Iterable[LedgerEvent],
    settings: Settings | None = None,
    go_live: bool = False,
) -> MarketLedgerEngine:
    """Build a fresh engine and re-apply `events` in order.

    Same events + same settings -> same markets, bets and balances. Each event
    runs at its logged timestamp; with go_live=True the clock switches to wall
    time afterwards so the engine can take new operations.
    """
    engine = _new_engine(settings)
    applied = 0
    for event in events:
        _step(engine, event)
        applied += 1
    if go_live:
        engine.clock.go_live()
    log.debug("replay_done", events=applied, markets=engine.get_total_markets())
    return engine


def replay_from_log(
    conn: Any,
    settings: Settings | None = None,
    end_ts: int | None = None,
    go_live: bool = False,
) -> MarketLedgerEngine:
    """Rebuild the engine from the DuckDB log, optionally as of `end_ts`."""
    return replay_ledger(stream_events(conn, end_ts=end_ts), settings=settings, go_live=go_live)


def replay_to_pool_series(
    conn: Any,
    market_id: int,
    settings: Settings | None = None,
) -> list[tuple[int, int, int]]:
    """
    Replay the log and return [(ts, total_yes, total_no), ...] after each event
    on `market_id`. Deterministic: same DB + params -> same output.
    """
    engine = _new_engine(settings)
    out: list[tuple[int, int, int]] = []
    for event in stream_events(conn):
        _step(engine, event)
        if event.market_id == market_id:
            m = engine.get_market(market_id)
            out.append((event.ts, m.total_yes_amount, m.total_no_amount))
    return out
