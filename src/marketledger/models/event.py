"""LedgerEvent - one committed state change, as journaled and replayed."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MARKET_CREATED = "market_created"
BET_PLACED = "bet_placed"
MARKET_RESOLVED = "market_resolved"
WINNINGS_CLAIMED = "winnings_claimed"
PAYOUT_FAILED = "payout_failed"
EMERGENCY_WITHDRAWN = "emergency_withdrawn"
ACCOUNT_FUNDED = "account_funded"

EVENT_TYPES = (
    MARKET_CREATED,
    BET_PLACED,
    MARKET_RESOLVED,
    WINNINGS_CLAIMED,
    PAYOUT_FAILED,
    EMERGENCY_WITHDRAWN,
    ACCOUNT_FUNDED,
)


class LedgerEvent(BaseModel):
    """Operation record. `payload` holds the operation's inputs and its result."""

    model_config = ConfigDict(frozen=True)

    seq: int = Field(..., ge=0)  # engine-local ordering
    event_type: str
    ts: int  # s epoch, clock time of the operation
    market_id: int | None = None
    account: str | None = None  # acting account (creator, participant, depositor)
    payload: dict[str, Any] = Field(default_factory=dict)
