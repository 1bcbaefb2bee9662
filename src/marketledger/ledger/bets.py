"""Bet ledger - one escrowed bet per (market, participant)."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from marketledger.errors import AlreadyExists, InvalidArgument, InvalidState, NotFound
from marketledger.ledger.clock import Clock
from marketledger.ledger.registry import MarketRegistry
from marketledger.ledger.store import LedgerStore
from marketledger.ledger.wallet import Wallet
from marketledger.models import Bet, BetStatus
from marketledger.units import UNIT

log = structlog.get_logger(__name__)

MIN_BET = UNIT // 1000  # 0.001 units
MAX_BET = 10 * UNIT


@dataclass(frozen=True)
class BetLimits:
    """Inclusive bet bounds in base units."""

    min_bet: int = MIN_BET
    max_bet: int = MAX_BET

    def __post_init__(self) -> None:
        if self.min_bet <= 0 or self.max_bet < self.min_bet:
            raise ValueError(f"Invalid bet limits: [{self.min_bet}, {self.max_bet}]")

    def allows(self, amount: int) -> bool:
        return self.min_bet <= amount <= self.max_bet


class BetLedger:
    def __init__(
        self,
        store: LedgerStore,
        registry: MarketRegistry,
        clock: Clock,
        wallet: Wallet,
        escrow_account: str,
        limits: BetLimits | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._clock = clock
        self._wallet = wallet
        self._escrow = escrow_account
        self.limits = limits or BetLimits()

    def place_bet(
        self, market_id: int, prediction: bool, amount: int, participant: str, now: int | None = None
    ) -> Bet:
        """Escrow `amount` from participant and record the bet.

        All checks run before the transfer; the bet and pool totals are only
        written once the transfer has succeeded.
        """
        market = self._registry.get_market(market_id)
        if now is None:
            now = self._clock.now()
        if market.resolved:
            raise InvalidState("Market already resolved")
        if now >= market.end_time:
            raise InvalidState("Market has ended")
        if not self.limits.allows(amount):
            raise InvalidArgument("Invalid bet amount")
        if participant == self._escrow:
            raise InvalidArgument("Escrow account cannot place bets")
        if self._store.get_bet(market_id, participant) is not None:
            raise AlreadyExists("Already placed bet")

        self._wallet.transfer(participant, self._escrow, amount, ref=f"bet:{market_id}")

        bet = Bet(
            market_id=market_id,
            participant=participant,
            amount=amount,
            prediction=prediction,
            placed_at=now,
        )
        if prediction:
            update = {"total_yes_amount": market.total_yes_amount + amount}
        else:
            update = {"total_no_amount": market.total_no_amount + amount}
        update["escrow_balance"] = market.escrow_balance + amount
        self._store.put_bet(bet)
        self._store.put_market(market.model_copy(update=update))
        log.info("bet_placed", market_id=market_id, participant=participant)
        return bet

    def get_bet(self, market_id: int, participant: str) -> BetStatus:
        bet = self._store.get_bet(market_id, participant)
        if bet is None:
            return BetStatus(exists=False, claimed=False)
        return BetStatus(exists=True, claimed=bet.claimed)

    def find_bet(self, market_id: int, participant: str) -> Bet:
        bet = self._store.get_bet(market_id, participant)
        if bet is None:
            raise NotFound(f"No bet for {participant} on market {market_id}")
        return bet

    def bets_for_market(self, market_id: int) -> list[Bet]:
        self._registry.get_market(market_id)
        return self._store.bets_for_market(market_id)
