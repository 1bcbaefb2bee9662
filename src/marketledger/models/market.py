"""Market and MarketState - the registry's canonical record."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MarketState(str, Enum):
    """Lifecycle state. Transitions only move forward: OPEN -> CLOSED -> RESOLVED."""

    OPEN = "open"
    CLOSED = "closed"
    RESOLVED = "resolved"


class Market(BaseModel):
    """Binary (yes/no) market. Immutable; the ledger swaps in updated copies."""

    model_config = ConfigDict(frozen=True)

    market_id: int = Field(..., ge=0)
    question: str = Field(..., min_length=1)
    creator: str
    created_at: int  # s epoch
    end_time: int  # s epoch, > created_at
    resolved: bool = False
    outcome: bool | None = None  # only meaningful once resolved
    resolved_at: int | None = None
    total_yes_amount: int = Field(0, ge=0)
    total_no_amount: int = Field(0, ge=0)
    escrow_balance: int = Field(0, ge=0)  # value still held for this market
    emergency_withdrawn: bool = False

    @property
    def total_pool(self) -> int:
        return self.total_yes_amount + self.total_no_amount

    @property
    def winning_pool(self) -> int:
        """Pool of the side matching the outcome; 0 while unresolved."""
        if not self.resolved:
            return 0
        return self.total_yes_amount if self.outcome else self.total_no_amount

    def state(self, now: int) -> MarketState:
        if self.resolved:
            return MarketState.RESOLVED
        if now >= self.end_time:
            return MarketState.CLOSED
        return MarketState.OPEN
