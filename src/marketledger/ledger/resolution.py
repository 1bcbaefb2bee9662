"""Resolution authority - the creator fixes the outcome once the market has closed."""

from __future__ import annotations

import structlog

from marketledger.errors import InvalidState, Unauthorized
from marketledger.ledger.clock import Clock
from marketledger.ledger.registry import MarketRegistry
from marketledger.ledger.store import LedgerStore
from marketledger.models import Market

log = structlog.get_logger(__name__)


class ResolutionAuthority:
    def __init__(self, store: LedgerStore, registry: MarketRegistry, clock: Clock) -> None:
        self._store = store
        self._registry = registry
        self._clock = clock

    def resolve_market(self, market_id: int, outcome: bool, caller: str, now: int | None = None) -> Market:
        market = self._registry.get_market(market_id)
        if caller != market.creator:
            log.warning("resolve_rejected", market_id=market_id, caller=caller, reason="not_creator")
            raise Unauthorized("Only creator can resolve")
        if now is None:
            now = self._clock.now()
        if market.resolved:
            raise InvalidState("Market already resolved")
        if now < market.end_time:
            raise InvalidState("Market is still active")
        resolved = market.model_copy(update={"resolved": True, "outcome": outcome, "resolved_at": now})
        self._store.put_market(resolved)
        log.info("market_resolved", market_id=market_id, outcome=outcome, resolved_at=now)
        return resolved
