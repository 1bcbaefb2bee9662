"""Ledger core: registry, bets, resolution, settlement, recovery behind one engine."""

from marketledger.ledger.bets import MAX_BET, MIN_BET, BetLimits
from marketledger.ledger.clock import ManualClock, ReplayClock, SystemClock
from marketledger.ledger.engine import MarketLedgerEngine
from marketledger.ledger.recovery import EMERGENCY_TIMELOCK
from marketledger.ledger.settlement import PayoutInstruction, compute_payout
from marketledger.ledger.wallet import ESCROW_ACCOUNT, InMemoryWallet, Wallet

__all__ = [
    "MarketLedgerEngine",
    "BetLimits",
    "MIN_BET",
    "MAX_BET",
    "EMERGENCY_TIMELOCK",
    "PayoutInstruction",
    "compute_payout",
    "ManualClock",
    "ReplayClock",
    "SystemClock",
    "Wallet",
    "InMemoryWallet",
    "ESCROW_ACCOUNT",
]
