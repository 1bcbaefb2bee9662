"""HTTP API against an injected engine."""

import pytest
from fastapi.testclient import TestClient

from marketledger.api.main import create_app
from marketledger.ledger import InMemoryWallet, ManualClock, MarketLedgerEngine

from conftest import START, WEEK


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def client(clock):
    engine = MarketLedgerEngine(wallet=InMemoryWallet(), clock=clock)
    return TestClient(create_app(engine))


def _fund(client, *accounts):
    for account in accounts:
        r = client.post("/wallet/deposit", json={"account": account, "amount": "1"})
        assert r.status_code == 200


def _market(client):
    r = client.post("/markets", json={"question": "Will X happen?", "duration": WEEK, "creator": "carol"})
    assert r.status_code == 201
    return r.json()["market_id"]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "markets": 0}


def test_create_and_get_market(client):
    mid = _market(client)
    r = client.get(f"/markets/{mid}")
    assert r.status_code == 200
    data = r.json()
    assert data["state"] == "open"
    assert data["end_time"] == START + WEEK
    assert data["escrow_balance"] == "0"
    assert client.get("/markets").json()["total"] == 1


def test_create_market_validation_error(client):
    r = client.post("/markets", json={"question": "", "duration": WEEK, "creator": "carol"})
    assert r.status_code == 422
    assert r.json()["code"] == "invalid_argument"


def test_unknown_market_is_404(client):
    r = client.get("/markets/99")
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"


def test_full_lifecycle(client, clock):
    _fund(client, "alice", "bob")
    mid = _market(client)

    r = client.post(f"/markets/{mid}/bets", json={"participant": "alice", "prediction": True, "amount": "0.1"})
    assert r.status_code == 201
    assert r.json() == {"market_id": mid, "participant": "alice", "exists": True, "claimed": False}
    client.post(f"/markets/{mid}/bets", json={"participant": "bob", "prediction": False, "amount": "0.1"})

    r = client.post(f"/markets/{mid}/bets", json={"participant": "alice", "prediction": False, "amount": "0.1"})
    assert r.status_code == 409
    assert r.json()["code"] == "already_exists"

    r = client.post(f"/markets/{mid}/resolve", json={"caller": "carol", "outcome": True})
    assert r.status_code == 409
    assert r.json()["code"] == "invalid_state"

    clock.advance(WEEK)
    r = client.post(f"/markets/{mid}/resolve", json={"caller": "alice", "outcome": True})
    assert r.status_code == 403
    r = client.post(f"/markets/{mid}/resolve", json={"caller": "carol", "outcome": True})
    assert r.status_code == 200
    assert r.json()["state"] == "resolved"
    assert r.json()["outcome"] is True

    r = client.post(f"/markets/{mid}/claim", json={"participant": "alice"})
    assert r.status_code == 200
    assert r.json()["payout"] == "0.2"
    assert client.get("/wallet/alice").json()["balance"] == "1.1"

    r = client.post(f"/markets/{mid}/claim", json={"participant": "alice"})
    assert r.json()["code"] == "already_claimed"
    r = client.post(f"/markets/{mid}/claim", json={"participant": "bob"})
    assert r.status_code == 409
    assert r.json()["code"] == "not_a_winner"

    r = client.get(f"/markets/{mid}/bets/alice")
    assert r.json()["claimed"] is True


def test_bet_amount_out_of_bounds(client):
    _fund(client, "alice")
    mid = _market(client)
    r = client.post(f"/markets/{mid}/bets", json={"participant": "alice", "prediction": True, "amount": "0.0001"})
    assert r.status_code == 422
    assert r.json()["code"] == "invalid_argument"


def test_unfunded_bet_is_502(client):
    mid = _market(client)
    r = client.post(f"/markets/{mid}/bets", json={"participant": "alice", "prediction": True, "amount": "0.1"})
    assert r.status_code == 502
    assert r.json()["code"] == "transfer_failed"


def test_bet_details_require_grant(client):
    _fund(client, "alice")
    mid = _market(client)
    client.post(f"/markets/{mid}/bets", json={"participant": "alice", "prediction": False, "amount": "0.5"})

    r = client.get(f"/markets/{mid}/bets/alice/details", params={"viewer": "alice"})
    assert r.status_code == 200
    assert r.json()["amount"] == "0.5"
    assert r.json()["prediction"] is False

    r = client.get(f"/markets/{mid}/bets/alice/details", params={"viewer": "carol"})
    assert r.status_code == 403


def test_emergency_withdraw_too_early(client, clock):
    _fund(client, "alice")
    mid = _market(client)
    client.post(f"/markets/{mid}/bets", json={"participant": "alice", "prediction": True, "amount": "0.1"})
    clock.advance(WEEK)
    client.post(f"/markets/{mid}/resolve", json={"caller": "carol", "outcome": False})
    r = client.post(f"/markets/{mid}/emergency-withdraw", json={"caller": "carol"})
    assert r.status_code == 409
    clock.advance(30 * 24 * 3600)
    r = client.post(f"/markets/{mid}/emergency-withdraw", json={"caller": "carol"})
    assert r.status_code == 200
    assert r.json()["amount"] == "0.1"


def test_deposit_rejects_bad_amount(client):
    r = client.post("/wallet/deposit", json={"account": "alice", "amount": "abc"})
    assert r.status_code == 422
    r = client.post("/wallet/deposit", json={"account": "alice", "amount": "0"})
    assert r.status_code == 422


def test_events_stats_without_journal(client):
    r = client.get("/events/stats")
    assert r.status_code == 404
    assert r.json()["code"] == "no_journal"
