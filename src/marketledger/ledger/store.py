"""In-memory market and bet collections owned by one engine."""

from __future__ import annotations

from marketledger.models import Bet, Market


class LedgerStore:
    """Ordered market map (id -> Market) and bet map ((market_id, participant) -> Bet).

    Records are immutable; writers replace whole entries so readers never see a
    half-applied update. Markets and bets are never deleted.
    """

    __slots__ = ("markets", "bets")

    def __init__(self) -> None:
        self.markets: dict[int, Market] = {}
        self.bets: dict[tuple[int, str], Bet] = {}

    @property
    def market_count(self) -> int:
        return len(self.markets)

    def next_market_id(self) -> int:
        return len(self.markets)

    def get_market(self, market_id: int) -> Market | None:
        return self.markets.get(market_id)

    def put_market(self, market: Market) -> None:
        self.markets[market.market_id] = market

    def get_bet(self, market_id: int, participant: str) -> Bet | None:
        return self.bets.get((market_id, participant))

    def put_bet(self, bet: Bet) -> None:
        self.bets[(bet.market_id, bet.participant)] = bet

    def bets_for_market(self, market_id: int) -> list[Bet]:
        return [b for (mid, _), b in list(self.bets.items()) if mid == market_id]
