"""Settlement: proportional payouts, single claim, failed payouts, dust."""

import pytest

from marketledger.errors import AlreadyClaimed, AlreadyExists, InvalidState, NotAWinner, NotFound, TransferFailed
from marketledger.ledger import ESCROW_ACCOUNT, BetLimits, MarketLedgerEngine, compute_payout
from marketledger.models import event as ev
from marketledger.units import UNIT

from conftest import WEEK

BET = UNIT // 10


@pytest.fixture
def resolved(engine, clock):
    """Carol's market: alice 0.1 yes, bob 0.1 no, resolved yes."""
    mid = engine.create_market("Will X happen?", WEEK, "carol")
    engine.place_bet(mid, True, BET, "alice")
    engine.place_bet(mid, False, BET, "bob")
    clock.advance(WEEK)
    engine.resolve_market(mid, True, "carol")
    return mid


def test_compute_payout():
    assert compute_payout(100, 300, 200, True) == 166
    assert compute_payout(200, 300, 200, False) == 500
    assert compute_payout(100, 100, 0, True) == 100
    assert compute_payout(100, 0, 100, True) == 0


def test_winner_claims_whole_pool(engine, resolved):
    instruction = engine.claim_winnings(resolved, "alice")

    assert instruction.amount == 2 * BET
    assert instruction.recipient == "alice"
    assert engine.get_bet(resolved, "alice") == (True, True)
    assert engine.balance_of("alice") == 5 * UNIT - BET + 2 * BET
    assert engine.get_market(resolved).escrow_balance == 0
    assert engine.balance_of(ESCROW_ACCOUNT) == 0


def test_double_claim_rejected(engine, resolved):
    engine.claim_winnings(resolved, "alice")
    with pytest.raises(AlreadyClaimed):
        engine.claim_winnings(resolved, "alice")
    assert engine.balance_of("alice") == 5 * UNIT + BET


def test_loser_cannot_claim(engine, resolved):
    with pytest.raises(NotAWinner):
        engine.claim_winnings(resolved, "bob")
    assert engine.get_bet(resolved, "bob") == (True, False)
    assert engine.balance_of("bob") == 5 * UNIT - BET


def test_claim_without_bet(engine, resolved):
    with pytest.raises(NotFound):
        engine.claim_winnings(resolved, "dave")


def test_claim_before_resolution(engine, clock):
    mid = engine.create_market("Open", WEEK, "carol")
    engine.place_bet(mid, True, BET, "alice")
    with pytest.raises(InvalidState, match="Market not resolved yet"):
        engine.claim_winnings(mid, "alice")
    assert engine.get_bet(mid, "alice") == (True, False)


def test_proportional_split_between_winners(engine, clock):
    mid = engine.create_market("Split", WEEK, "carol")
    engine.place_bet(mid, True, 3 * BET, "alice")
    engine.place_bet(mid, True, BET, "dave")
    engine.place_bet(mid, False, 2 * BET, "bob")
    clock.advance(WEEK)
    engine.resolve_market(mid, True, "carol")

    assert engine.claim_winnings(mid, "alice").amount == 3 * BET * 6 // 4
    assert engine.claim_winnings(mid, "dave").amount == BET * 6 // 4
    assert engine.get_market(mid).escrow_balance == 0


def test_no_winners_on_winning_side(engine, clock):
    mid = engine.create_market("One sided", WEEK, "carol")
    engine.place_bet(mid, True, BET, "alice")
    clock.advance(WEEK)
    engine.resolve_market(mid, False, "carol")
    with pytest.raises(NotAWinner):
        engine.claim_winnings(mid, "alice")
    assert engine.get_market(mid).escrow_balance == BET


def test_rounding_dust_stays_in_escrow(clock, wallet):
    engine = MarketLedgerEngine(wallet=wallet, clock=clock, limits=BetLimits(min_bet=1, max_bet=1000))
    mid = engine.create_market("Dust", WEEK, "carol")
    engine.place_bet(mid, True, 1, "alice")
    engine.place_bet(mid, True, 2, "dave")
    engine.place_bet(mid, False, 1, "bob")
    clock.advance(WEEK)
    engine.resolve_market(mid, True, "carol")

    paid = engine.claim_winnings(mid, "alice").amount + engine.claim_winnings(mid, "dave").amount
    assert paid == 3
    assert engine.get_market(mid).escrow_balance == 1
    assert engine.balance_of(ESCROW_ACCOUNT) == 1


def test_failed_payout_restores_escrow_and_keeps_claimed(engine, wallet, resolved):
    events = []
    engine.subscribe(events.append)
    wallet.fail_to.add("alice")

    with pytest.raises(TransferFailed):
        engine.claim_winnings(resolved, "alice")

    assert engine.get_bet(resolved, "alice") == (True, True)
    assert engine.get_market(resolved).escrow_balance == 2 * BET
    assert engine.balance_of("alice") == 5 * UNIT - BET
    assert [e.event_type for e in events] == [ev.PAYOUT_FAILED]
    assert events[0].payload == {"amount": 2 * BET}

    wallet.fail_to.clear()
    with pytest.raises(AlreadyClaimed):
        engine.claim_winnings(resolved, "alice")


def test_reentrant_claim_during_payout_sees_claimed_flag(engine, wallet, resolved):
    seen = []
    transfer = wallet.transfer

    def reentrant(from_account, to_account, amount, ref=""):
        if to_account == "alice" and not seen:
            try:
                engine.claim_winnings(resolved, "alice")
            except AlreadyClaimed as exc:
                seen.append(exc)
        transfer(from_account, to_account, amount, ref)

    wallet.transfer = reentrant
    engine.claim_winnings(resolved, "alice")

    assert len(seen) == 1
    assert engine.balance_of("alice") == 5 * UNIT + BET


def test_conservation_after_full_lifecycle(engine, clock):
    mid = engine.create_market("Conservation", WEEK, "carol")
    engine.place_bet(mid, True, 3 * BET, "alice")
    engine.place_bet(mid, False, 7 * BET, "bob")
    engine.place_bet(mid, True, 4 * BET, "dave")
    with pytest.raises(AlreadyExists):
        engine.place_bet(mid, True, BET, "dave")
    clock.advance(WEEK)
    engine.resolve_market(mid, True, "carol")

    m = engine.get_market(mid)
    paid = sum(engine.claim_winnings(mid, p).amount for p in ("alice", "dave"))
    assert paid <= m.total_pool
    assert paid + engine.get_market(mid).escrow_balance == m.total_pool
    total = sum(engine.wallet.balances().values())
    assert total == 20 * UNIT
