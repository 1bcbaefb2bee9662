"""Emergency recovery - creator sweeps the remaining market escrow after a timelock."""

from __future__ import annotations

import structlog

from marketledger.errors import InvalidState, TransferFailed, Unauthorized
from marketledger.ledger.clock import Clock
from marketledger.ledger.registry import MarketRegistry
from marketledger.ledger.store import LedgerStore
from marketledger.ledger.wallet import Wallet

log = structlog.get_logger(__name__)

EMERGENCY_TIMELOCK = 30 * 24 * 60 * 60  # seconds after resolution


class EmergencyRecovery:
    def __init__(
        self,
        store: LedgerStore,
        registry: MarketRegistry,
        clock: Clock,
        wallet: Wallet,
        escrow_account: str,
        timelock: int = EMERGENCY_TIMELOCK,
    ) -> None:
        self._store = store
        self._registry = registry
        self._clock = clock
        self._wallet = wallet
        self._escrow = escrow_account
        self.timelock = timelock

    def unlock_time(self, market_id: int) -> int | None:
        """Earliest time emergency withdrawal is allowed, or None while unresolved."""
        market = self._registry.get_market(market_id)
        if market.resolved_at is None:
            return None
        return market.resolved_at + self.timelock

    def emergency_withdraw(self, market_id: int, caller: str, now: int | None = None) -> int:
        """Transfer the market's unclaimed escrow to its creator. Returns the amount moved.

        Does not look at individual bets: any bet still unclaimed afterwards can
        no longer be paid.
        """
        market = self._registry.get_market(market_id)
        if caller != market.creator:
            log.warning("emergency_withdraw_rejected", market_id=market_id, caller=caller, reason="not_creator")
            raise Unauthorized("Only creator can withdraw")
        if not market.resolved or market.resolved_at is None:
            raise InvalidState("Market not resolved yet")
        if now is None:
            now = self._clock.now()
        if now < market.resolved_at + self.timelock:
            raise InvalidState("Too early for emergency withdrawal")
        if market.emergency_withdrawn:
            raise InvalidState("Emergency withdrawal already done")
        amount = market.escrow_balance
        if amount <= 0:
            raise InvalidState("Nothing to withdraw")

        self._store.put_market(market.model_copy(update={"escrow_balance": 0, "emergency_withdrawn": True}))
        try:
            self._wallet.transfer(self._escrow, market.creator, amount, ref=f"emergency:{market_id}")
        except TransferFailed:
            self._store.put_market(market)
            log.error("emergency_withdraw_failed", market_id=market_id, amount=amount)
            raise
        log.warning("emergency_withdrawn", market_id=market_id, creator=market.creator, amount=amount)
        return amount
