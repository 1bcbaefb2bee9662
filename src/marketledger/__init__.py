"""Market ledger - binary prediction markets with escrowed bets, resolution and settlement."""

__version__ = "0.1.0"
