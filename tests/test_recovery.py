"""Emergency withdrawal: creator only, after the timelock, once."""

import pytest

from marketledger.errors import InvalidState, TransferFailed, Unauthorized
from marketledger.ledger import EMERGENCY_TIMELOCK
from marketledger.units import UNIT

from conftest import WEEK

BET = UNIT // 10


@pytest.fixture
def resolved(engine, clock):
    mid = engine.create_market("Will X happen?", WEEK, "carol")
    engine.place_bet(mid, True, BET, "alice")
    clock.advance(WEEK)
    engine.resolve_market(mid, True, "carol")
    return mid


def test_timelock_is_thirty_days():
    assert EMERGENCY_TIMELOCK == 30 * 24 * 60 * 60


def test_too_early(engine, resolved, clock):
    with pytest.raises(InvalidState, match="Too early for emergency withdrawal"):
        engine.emergency_withdraw(resolved, "carol")
    clock.advance(EMERGENCY_TIMELOCK - 1)
    with pytest.raises(InvalidState, match="Too early"):
        engine.emergency_withdraw(resolved, "carol")


def test_only_creator(engine, resolved, clock):
    clock.advance(EMERGENCY_TIMELOCK)
    with pytest.raises(Unauthorized, match="Only creator can withdraw"):
        engine.emergency_withdraw(resolved, "alice")


def test_unresolved_market(engine, clock):
    mid = engine.create_market("Never resolved", WEEK, "carol")
    clock.advance(WEEK + EMERGENCY_TIMELOCK)
    with pytest.raises(Unauthorized):
        engine.emergency_withdraw(mid, "alice")
    with pytest.raises(InvalidState, match="Market not resolved yet"):
        engine.emergency_withdraw(mid, "carol")


def test_withdraw_after_timelock(engine, resolved, clock):
    clock.set(engine.get_market(resolved).resolved_at + EMERGENCY_TIMELOCK)
    assert engine.recovery.unlock_time(resolved) == clock.now()

    amount = engine.emergency_withdraw(resolved, "carol")

    assert amount == BET
    assert engine.balance_of("carol") == 5 * UNIT + BET
    m = engine.get_market(resolved)
    assert m.escrow_balance == 0
    assert m.emergency_withdrawn is True
    with pytest.raises(InvalidState):
        engine.emergency_withdraw(resolved, "carol")


def test_claim_after_withdrawal_fails(engine, resolved, clock):
    clock.advance(EMERGENCY_TIMELOCK)
    engine.emergency_withdraw(resolved, "carol")
    with pytest.raises(InvalidState, match="Market escrow cannot cover payout"):
        engine.claim_winnings(resolved, "alice")
    assert engine.get_bet(resolved, "alice") == (True, False)


def test_nothing_left_after_all_claims(engine, resolved, clock):
    engine.claim_winnings(resolved, "alice")
    clock.advance(EMERGENCY_TIMELOCK)
    with pytest.raises(InvalidState, match="Nothing to withdraw"):
        engine.emergency_withdraw(resolved, "carol")


def test_failed_transfer_restores_market(engine, wallet, resolved, clock):
    clock.advance(EMERGENCY_TIMELOCK)
    wallet.fail_to.add("carol")
    with pytest.raises(TransferFailed):
        engine.emergency_withdraw(resolved, "carol")

    m = engine.get_market(resolved)
    assert m.escrow_balance == BET
    assert m.emergency_withdrawn is False

    wallet.fail_to.clear()
    assert engine.emergency_withdraw(resolved, "carol") == BET


def test_recovers_unpaid_failed_payout(engine, wallet, resolved, clock):
    wallet.fail_to.add("alice")
    with pytest.raises(TransferFailed):
        engine.claim_winnings(resolved, "alice")
    clock.advance(EMERGENCY_TIMELOCK)
    assert engine.emergency_withdraw(resolved, "carol") == BET
