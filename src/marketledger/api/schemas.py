"""Pydantic schemas for API request/response consistency and OpenAPI docs.

Amounts cross the API as decimal strings in whole units (e.g. "0.1"), never floats.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from marketledger.models import Market
from marketledger.units import format_amount


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"
    markets: int = 0


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. not_found, already_claimed")


# --- Markets ---
class CreateMarketRequest(BaseModel):
    question: str
    duration: int = Field(..., description="Seconds until betting closes")
    creator: str


class MarketResponse(BaseModel):
    market_id: int
    question: str
    creator: str
    created_at: int
    end_time: int
    state: str
    resolved: bool
    outcome: bool | None = None
    resolved_at: int | None = None
    total_yes_amount: str
    total_no_amount: str
    escrow_balance: str

    @classmethod
    def from_market(cls, market: Market, now: int) -> MarketResponse:
        return cls(
            market_id=market.market_id,
            question=market.question,
            creator=market.creator,
            created_at=market.created_at,
            end_time=market.end_time,
            state=market.state(now).value,
            resolved=market.resolved,
            outcome=market.outcome if market.resolved else None,
            resolved_at=market.resolved_at,
            total_yes_amount=format_amount(market.total_yes_amount),
            total_no_amount=format_amount(market.total_no_amount),
            escrow_balance=format_amount(market.escrow_balance),
        )


class MarketsListResponse(BaseModel):
    markets: list[MarketResponse]
    total: int


class ResolveRequest(BaseModel):
    caller: str
    outcome: bool


# --- Bets ---
class PlaceBetRequest(BaseModel):
    participant: str
    prediction: bool
    amount: str = Field(..., description='Stake in whole units, e.g. "0.1"')


class BetStatusResponse(BaseModel):
    market_id: int
    participant: str
    exists: bool
    claimed: bool


class BetDetailResponse(BaseModel):
    market_id: int
    participant: str
    amount: str
    prediction: bool
    placed_at: int
    claimed: bool


# --- Settlement / recovery ---
class ClaimRequest(BaseModel):
    participant: str


class ClaimResponse(BaseModel):
    market_id: int
    participant: str
    payout: str


class WithdrawRequest(BaseModel):
    caller: str


class WithdrawResponse(BaseModel):
    market_id: int
    recipient: str
    amount: str


# --- Wallet ---
class DepositRequest(BaseModel):
    account: str
    amount: str


class BalanceResponse(BaseModel):
    account: str
    balance: str


# --- Events ---
class EventsStatsResponse(BaseModel):
    total_events: int
    min_ts: int | None
    max_ts: int | None
    by_type: list[dict[str, Any]]
