"""Market ledger engine - the single serialized entry point for all ledger operations."""

from __future__ import annotations

from threading import RLock
from typing import TYPE_CHECKING, Any, Callable

import structlog

from marketledger.errors import InvalidArgument, TransferFailed
from marketledger.ledger.acl import AccessControlList
from marketledger.ledger.bets import BetLedger, BetLimits
from marketledger.ledger.clock import Clock, SystemClock
from marketledger.ledger.recovery import EMERGENCY_TIMELOCK, EmergencyRecovery
from marketledger.ledger.registry import MarketRegistry
from marketledger.ledger.resolution import ResolutionAuthority
from marketledger.ledger.settlement import PayoutInstruction, SettlementEngine
from marketledger.ledger.store import LedgerStore
from marketledger.ledger.wallet import ESCROW_ACCOUNT, InMemoryWallet, Wallet
from marketledger.models import Bet, BetStatus, LedgerEvent, Market, bet_handle
from marketledger.models import event as ev

if TYPE_CHECKING:
    from marketledger.config.settings import Settings

log = structlog.get_logger(__name__)

ENGINE_SUBJECT = "ledger"

EventListener = Callable[[LedgerEvent], None]


class MarketLedgerEngine:
    """Markets, bets, resolution, settlement and emergency recovery over one store.

    Mutating operations hold one re-entrant lock for their whole duration,
    including the value transfer, so they are serialized against each other.
    Reads take no lock: records are immutable and replaced whole on commit.
    """

    def __init__(
        self,
        store: LedgerStore | None = None,
        wallet: Wallet | None = None,
        clock: Clock | None = None,
        limits: BetLimits | None = None,
        emergency_timelock: int = EMERGENCY_TIMELOCK,
        escrow_account: str = ESCROW_ACCOUNT,
    ) -> None:
        self.store = store or LedgerStore()
        self.wallet = wallet or InMemoryWallet()
        self.clock = clock or SystemClock()
        self.escrow_account = escrow_account
        self.acl = AccessControlList()
        self.registry = MarketRegistry(self.store, self.clock, escrow_account)
        self.bets = BetLedger(self.store, self.registry, self.clock, self.wallet, escrow_account, limits)
        self.resolution = ResolutionAuthority(self.store, self.registry, self.clock)
        self.settlement = SettlementEngine(self.store, self.registry, self.bets, self.wallet, escrow_account)
        self.recovery = EmergencyRecovery(
            self.store, self.registry, self.clock, self.wallet, escrow_account, emergency_timelock
        )
        self._lock = RLock()
        self._listeners: list[EventListener] = []
        self._seq = 0

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        wallet: Wallet | None = None,
        clock: Clock | None = None,
    ) -> MarketLedgerEngine:
        return cls(
            wallet=wallet,
            clock=clock,
            limits=settings.bet_limits(),
            emergency_timelock=settings.emergency_timelock_sec,
            escrow_account=settings.escrow_account,
        )

    # --- events ---

    def subscribe(self, listener: EventListener) -> None:
        """Call `listener` with every committed event, stamped with the time the operation used.

        A listener that raises fails the operation for its caller; the in-memory
        change is already applied at that point.
        """
        self._listeners.append(listener)

    def _emit(
        self,
        event_type: str,
        ts: int,
        market_id: int | None = None,
        account: str | None = None,
        **payload: Any,
    ) -> None:
        event = LedgerEvent(
            seq=self._seq,
            event_type=event_type,
            ts=ts,
            market_id=market_id,
            account=account,
            payload=payload,
        )
        self._seq += 1
        for listener in self._listeners:
            listener(event)

    # --- market registry ---

    def create_market(self, question: str, duration: int, creator: str) -> int:
        with self._lock:
            now = self.clock.now()
            market_id = self.registry.create_market(question, duration, creator, now=now)
            self._emit(ev.MARKET_CREATED, now, market_id, creator, question=question, duration=duration)
            return market_id

    def get_market(self, market_id: int) -> Market:
        return self.registry.get_market(market_id)

    def get_total_markets(self) -> int:
        return self.registry.get_total_markets()

    def list_markets(self) -> list[Market]:
        return self.registry.list_markets()

    # --- bet ledger ---

    def place_bet(self, market_id: int, prediction: bool, amount: int, participant: str) -> Bet:
        with self._lock:
            bet = self.bets.place_bet(market_id, prediction, amount, participant, now=self.clock.now())
            self.acl.grant(bet.handle, ENGINE_SUBJECT)
            self.acl.grant(bet.handle, participant)
            self._emit(ev.BET_PLACED, bet.placed_at, market_id, participant, prediction=prediction, amount=amount)
            return bet

    def get_bet(self, market_id: int, participant: str) -> BetStatus:
        return self.bets.get_bet(market_id, participant)

    def bets_for_market(self, market_id: int) -> list[Bet]:
        return self.bets.bets_for_market(market_id)

    def reveal_bet(self, market_id: int, participant: str, viewer: str) -> Bet:
        """Return the bet's private details (amount, side) to a granted viewer."""
        bet = self.bets.find_bet(market_id, participant)
        self.acl.require(bet_handle(market_id, participant), viewer)
        return bet

    def grant_bet_access(self, market_id: int, participant: str, subject: str, granted_by: str) -> None:
        """Let a bettor share their bet details with another subject."""
        with self._lock:
            self.bets.find_bet(market_id, participant)
            handle = bet_handle(market_id, participant)
            self.acl.require(handle, granted_by)
            self.acl.grant(handle, subject)

    # --- resolution ---

    def resolve_market(self, market_id: int, outcome: bool, caller: str) -> Market:
        with self._lock:
            market = self.resolution.resolve_market(market_id, outcome, caller, now=self.clock.now())
            self._emit(ev.MARKET_RESOLVED, market.resolved_at, market_id, caller, outcome=outcome)
            return market

    # --- settlement ---

    def claim_winnings(self, market_id: int, participant: str) -> PayoutInstruction:
        with self._lock:
            now = self.clock.now()
            instruction = self.settlement.settle(market_id, participant)
            try:
                self.settlement.execute(instruction)
            except TransferFailed:
                self._emit(ev.PAYOUT_FAILED, now, market_id, participant, amount=instruction.amount)
                raise
            self._emit(ev.WINNINGS_CLAIMED, now, market_id, participant, amount=instruction.amount)
            log.info("winnings_claimed", market_id=market_id, participant=participant, amount=instruction.amount)
            return instruction

    def record_failed_payout(self, market_id: int, participant: str) -> PayoutInstruction:
        """Settle a bet whose payout transfer failed, without attempting the transfer.

        Used by replay to reproduce a logged payout failure.
        """
        with self._lock:
            instruction = self.settlement.settle(market_id, participant)
            self.settlement.restore_escrow(instruction)
            self._emit(ev.PAYOUT_FAILED, self.clock.now(), market_id, participant, amount=instruction.amount)
            return instruction

    # --- emergency recovery ---

    def emergency_withdraw(self, market_id: int, caller: str) -> int:
        with self._lock:
            now = self.clock.now()
            amount = self.recovery.emergency_withdraw(market_id, caller, now=now)
            self._emit(ev.EMERGENCY_WITHDRAWN, now, market_id, caller, amount=amount)
            return amount

    # --- wallet ---

    def deposit(self, account: str, amount: int) -> int:
        """Fund an account with play money. Returns the new balance."""
        if amount <= 0:
            raise InvalidArgument("Deposit amount must be positive")
        if account == self.escrow_account:
            raise InvalidArgument("Cannot deposit into the escrow account")
        with self._lock:
            self.wallet.credit(account, amount, ref="deposit")
            self._emit(ev.ACCOUNT_FUNDED, self.clock.now(), None, account, amount=amount)
            return self.wallet.balance_of(account)

    def balance_of(self, account: str) -> int:
        return self.wallet.balance_of(account)

    @property
    def escrow_total(self) -> int:
        """Sum of all markets' recoverable escrow."""
        return sum(m.escrow_balance for m in self.list_markets())
