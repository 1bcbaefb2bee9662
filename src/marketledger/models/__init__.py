"""Canonical schema (Pydantic) - Market, Bet, LedgerEvent."""

from marketledger.models.bet import Bet, BetStatus, bet_handle
from marketledger.models.event import LedgerEvent
from marketledger.models.market import Market, MarketState

__all__ = [
    "Market",
    "MarketState",
    "Bet",
    "BetStatus",
    "bet_handle",
    "LedgerEvent",
]
