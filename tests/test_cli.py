"""CLI commands against a temporary journal."""

import pytest
from typer.testing import CliRunner

from marketledger.cli.app import app

runner = CliRunner()


@pytest.fixture
def cfg(tmp_path, monkeypatch):
    # Leave structlog unconfigured so no logger caches the runner's stdout.
    monkeypatch.setattr("marketledger.cli.app.configure_logging", lambda settings: None)
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    db_path = (tmp_path / "data" / "ledger.duckdb").as_posix()
    (config_dir / "default.toml").write_text(f'[storage]\ndb_path = "{db_path}"\n')
    return config_dir


def invoke(cfg, *args):
    return runner.invoke(app, ["--config-dir", str(cfg), *args])


def test_market_and_bet_flow(cfg):
    r = invoke(cfg, "wallet", "deposit", "alice", "1")
    assert r.exit_code == 0, r.output
    assert "alice: 1" in r.output

    r = invoke(cfg, "markets", "create", "Will X happen?", "--as", "carol")
    assert r.exit_code == 0, r.output
    assert "Created market 0" in r.output

    r = invoke(cfg, "bet", "place", "0", "0.1", "--side", "yes", "--as", "alice")
    assert r.exit_code == 0, r.output

    r = invoke(cfg, "bet", "show", "0", "--as", "alice")
    assert "exists=True claimed=False" in r.output

    r = invoke(cfg, "bet", "reveal", "0", "--bettor", "alice", "--as", "alice")
    assert "0.1 on yes" in r.output

    r = invoke(cfg, "wallet", "balance", "alice")
    assert "alice: 0.9" in r.output

    r = invoke(cfg, "markets", "list")
    assert "Total: 1 markets" in r.output
    assert "open" in r.output

    r = invoke(cfg, "markets", "show", "0")
    assert "creator: carol" in r.output
    assert "escrow: 0.1" in r.output


def test_errors_exit_nonzero(cfg):
    invoke(cfg, "wallet", "deposit", "alice", "1")
    invoke(cfg, "markets", "create", "Will X happen?", "--as", "carol")
    invoke(cfg, "bet", "place", "0", "0.1", "--side", "no", "--as", "alice")

    r = invoke(cfg, "bet", "place", "0", "0.1", "--side", "yes", "--as", "alice")
    assert r.exit_code == 1
    assert "already_exists" in r.output

    r = invoke(cfg, "markets", "resolve", "0", "--outcome", "yes", "--as", "alice")
    assert r.exit_code == 1
    assert "unauthorized" in r.output

    r = invoke(cfg, "markets", "resolve", "0", "--outcome", "yes", "--as", "carol")
    assert r.exit_code == 1
    assert "invalid_state" in r.output

    r = invoke(cfg, "markets", "show", "5")
    assert r.exit_code == 1
    assert "not_found" in r.output

    r = invoke(cfg, "bet", "place", "0", "abc", "--side", "yes", "--as", "bob")
    assert r.exit_code == 1
    assert "invalid_argument" in r.output


def test_log_stats_and_replay(cfg):
    invoke(cfg, "wallet", "deposit", "alice", "1")
    invoke(cfg, "markets", "create", "Will X happen?", "--as", "carol")
    invoke(cfg, "bet", "place", "0", "0.25", "--side", "yes", "--as", "alice")
    # rejected operations are not journaled
    invoke(cfg, "bet", "place", "0", "0.25", "--side", "yes", "--as", "alice")

    r = invoke(cfg, "log", "stats")
    assert r.exit_code == 0, r.output
    assert "Total events: 3" in r.output
    assert "bet_placed  1" in r.output

    r = invoke(cfg, "replay", "run")
    assert r.exit_code == 0, r.output
    assert "Replayed into 1 market(s), 0 resolved" in r.output
    assert "Escrow held: 0.25" in r.output

    r = invoke(cfg, "replay", "series", "--market", "0")
    assert "Replayed 2 events for market 0" in r.output
    assert "yes=0.25" in r.output


def test_tui_needs_a_journal(cfg):
    r = invoke(cfg, "tui", "--refresh", "5")
    assert r.exit_code == 1
    assert "No ledger database yet" in r.output
