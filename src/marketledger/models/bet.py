"""Bet and BetStatus."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class Bet(BaseModel):
    """One participant's stake on one market. Only `claimed` ever changes."""

    model_config = ConfigDict(frozen=True)

    market_id: int = Field(..., ge=0)
    participant: str
    amount: int = Field(..., gt=0)  # base units
    prediction: bool  # True = yes
    placed_at: int
    claimed: bool = False

    @property
    def handle(self) -> str:
        """Capability handle for the private bet details."""
        return bet_handle(self.market_id, self.participant)


class BetStatus(NamedTuple):
    exists: bool
    claimed: bool


def bet_handle(market_id: int, participant: str) -> str:
    return f"bet:{market_id}:{participant}"
