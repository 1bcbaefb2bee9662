"""Shared fixtures: manual clock, funded wallet, engine, temp DuckDB."""

import tempfile
from pathlib import Path

import pytest

from marketledger.errors import TransferFailed
from marketledger.ledger import InMemoryWallet, ManualClock, MarketLedgerEngine
from marketledger.storage.db import get_connection, init_schema
from marketledger.units import UNIT

START = 1_700_000_000
WEEK = 7 * 24 * 60 * 60


class FlakyWallet(InMemoryWallet):
    """Fails every transfer whose recipient is in `fail_to`."""

    def __init__(self, balances=None):
        super().__init__(balances)
        self.fail_to: set[str] = set()

    def transfer(self, from_account, to_account, amount, ref=""):
        if to_account in self.fail_to:
            raise TransferFailed(f"Transfer to {to_account} rejected")
        super().transfer(from_account, to_account, amount, ref)


def funded_balances():
    return {name: 5 * UNIT for name in ("alice", "bob", "carol", "dave")}


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def wallet():
    return FlakyWallet(funded_balances())


@pytest.fixture
def engine(clock, wallet):
    return MarketLedgerEngine(wallet=wallet, clock=clock)


@pytest.fixture
def temp_db():
    tmp = tempfile.mkdtemp()
    path = Path(tmp) / "test.duckdb"
    conn = get_connection(path)
    init_schema(conn)
    yield conn
    conn.close()
    path.unlink(missing_ok=True)
    Path(tmp).rmdir()
