"""Value-transfer subsystem: account balances and transfers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from threading import Lock

import structlog

from marketledger.errors import TransferFailed

log = structlog.get_logger(__name__)

ESCROW_ACCOUNT = "escrow"


class Wallet(ABC):
    """Transfer primitive used for bet funding, payouts and emergency recovery.

    Implementations raise TransferFailed instead of returning a status, and a
    failed transfer must leave all balances unchanged.
    """

    @abstractmethod
    def balance_of(self, account: str) -> int: ...

    @abstractmethod
    def credit(self, account: str, amount: int, ref: str = "") -> None: ...

    @abstractmethod
    def transfer(self, from_account: str, to_account: str, amount: int, ref: str = "") -> None:
        """Move `amount` or raise TransferFailed."""
        ...


class InMemoryWallet(Wallet):
    """Play-money balances held in a dict. Thread-safe."""

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self._balances: dict[str, int] = dict(balances or {})
        self._lock = Lock()

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def balances(self) -> dict[str, int]:
        with self._lock:
            return dict(self._balances)

    def credit(self, account: str, amount: int, ref: str = "") -> None:
        if amount <= 0:
            raise TransferFailed(f"Credit amount must be positive: {amount}")
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount
        log.debug("wallet_credit", account=account, amount=amount, ref=ref)

    def transfer(self, from_account: str, to_account: str, amount: int, ref: str = "") -> None:
        if amount <= 0:
            raise TransferFailed(f"Transfer amount must be positive: {amount}")
        with self._lock:
            available = self._balances.get(from_account, 0)
            if available < amount:
                log.warning(
                    "wallet_insufficient_balance",
                    account=from_account,
                    available=available,
                    amount=amount,
                    ref=ref,
                )
                raise TransferFailed(f"Insufficient balance in {from_account}")
            self._balances[from_account] = available - amount
            self._balances[to_account] = self._balances.get(to_account, 0) + amount
        log.debug("wallet_transfer", from_account=from_account, to_account=to_account, amount=amount, ref=ref)
