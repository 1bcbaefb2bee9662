"""Settlement engine - proportional payouts to winning bets.

Claiming is split in two steps. `settle` performs every state write (escrow
debit, then the bet's claimed flag as the final write) and returns a
PayoutInstruction. `execute` then performs the external transfer and nothing
else on success. A failed transfer does not clear the claimed flag: the bet
stays settled and the unpaid amount goes back to the market's recoverable
escrow for the creator's emergency withdrawal.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from marketledger.errors import AlreadyClaimed, InvalidState, NotAWinner, TransferFailed
from marketledger.ledger.bets import BetLedger
from marketledger.ledger.registry import MarketRegistry
from marketledger.ledger.store import LedgerStore
from marketledger.ledger.wallet import Wallet

log = structlog.get_logger(__name__)


def compute_payout(amount: int, total_yes: int, total_no: int, outcome: bool) -> int:
    """amount * total_pool // winning_pool (truncating). 0 when nobody backed the outcome."""
    winning = total_yes if outcome else total_no
    if winning <= 0:
        return 0
    return amount * (total_yes + total_no) // winning


@dataclass(frozen=True)
class PayoutInstruction:
    market_id: int
    recipient: str
    amount: int


class SettlementEngine:
    def __init__(
        self,
        store: LedgerStore,
        registry: MarketRegistry,
        bets: BetLedger,
        wallet: Wallet,
        escrow_account: str,
    ) -> None:
        self._store = store
        self._registry = registry
        self._bets = bets
        self._wallet = wallet
        self._escrow = escrow_account

    def settle(self, market_id: int, participant: str) -> PayoutInstruction:
        bet = self._bets.find_bet(market_id, participant)
        market = self._registry.get_market(market_id)
        if not market.resolved:
            raise InvalidState("Market not resolved yet")
        if bet.claimed:
            raise AlreadyClaimed("Already claimed")
        if bet.prediction != market.outcome:
            raise NotAWinner("Bet did not win")
        payout = compute_payout(bet.amount, market.total_yes_amount, market.total_no_amount, market.outcome)
        if payout <= 0:
            raise NotAWinner("No winnings for this bet")
        if payout > market.escrow_balance:
            raise InvalidState("Market escrow cannot cover payout")

        self._store.put_market(market.model_copy(update={"escrow_balance": market.escrow_balance - payout}))
        # Last write before the transfer.
        self._store.put_bet(bet.model_copy(update={"claimed": True}))
        return PayoutInstruction(market_id=market_id, recipient=participant, amount=payout)

    def execute(self, instruction: PayoutInstruction) -> None:
        try:
            self._wallet.transfer(
                self._escrow, instruction.recipient, instruction.amount, ref=f"payout:{instruction.market_id}"
            )
        except TransferFailed:
            self.restore_escrow(instruction)
            log.error(
                "payout_failed",
                market_id=instruction.market_id,
                participant=instruction.recipient,
                amount=instruction.amount,
            )
            raise

    def restore_escrow(self, instruction: PayoutInstruction) -> None:
        """Return an unpaid payout to the market escrow. The claimed flag stays set."""
        market = self._registry.get_market(instruction.market_id)
        self._store.put_market(
            market.model_copy(update={"escrow_balance": market.escrow_balance + instruction.amount})
        )
