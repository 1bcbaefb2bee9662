"""Market registry - creation, lookup and counting of markets."""

from __future__ import annotations

import structlog

from marketledger.errors import InvalidArgument, NotFound
from marketledger.ledger.clock import Clock
from marketledger.ledger.store import LedgerStore
from marketledger.ledger.wallet import ESCROW_ACCOUNT
from marketledger.models import Market

log = structlog.get_logger(__name__)


class MarketRegistry:
    """Allocates sequential market ids (starting at 0) and owns Market records."""

    def __init__(self, store: LedgerStore, clock: Clock, escrow_account: str = ESCROW_ACCOUNT) -> None:
        self._store = store
        self._clock = clock
        self._escrow = escrow_account

    def create_market(self, question: str, duration: int, creator: str, now: int | None = None) -> int:
        if not question or not question.strip():
            raise InvalidArgument("Question cannot be empty")
        if duration <= 0:
            raise InvalidArgument("Duration must be positive")
        if creator == self._escrow:
            raise InvalidArgument("Escrow account cannot create markets")
        if now is None:
            now = self._clock.now()
        market_id = self._store.next_market_id()
        market = Market(
            market_id=market_id,
            question=question,
            creator=creator,
            created_at=now,
            end_time=now + duration,
        )
        self._store.put_market(market)
        log.info("market_created", market_id=market_id, creator=creator, end_time=market.end_time)
        return market_id

    def get_market(self, market_id: int) -> Market:
        market = self._store.get_market(market_id)
        if market is None:
            raise NotFound(f"Market does not exist: {market_id}")
        return market

    def get_total_markets(self) -> int:
        return self._store.market_count

    def list_markets(self) -> list[Market]:
        return [self._store.markets[i] for i in range(self._store.market_count)]
