"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from marketledger.config import get_settings
from marketledger.config.settings import configure_logging

app = typer.Typer(
    name="mledger",
    help="Market ledger - create binary markets, escrow bets, resolve and settle.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from marketledger.cli import api_cmd, bets, log, markets, replay, wallet  # noqa: E402

app.add_typer(markets.app, name="markets")
app.add_typer(bets.app, name="bet")
app.add_typer(wallet.app, name="wallet")
app.add_typer(log.app, name="log")
app.add_typer(replay.app, name="replay")
app.add_typer(api_cmd.app, name="api")


@app.command("tui")
def tui(
    ctx: typer.Context,
    refresh: float = typer.Option(2.0, "--refresh", "-r", min=0.2, help="Seconds between journal reloads"),
) -> None:
    """Read-only dashboard of markets, pools and escrow."""
    from marketledger.tui.app import run_tui

    run_tui(ctx.obj["settings"], refresh_sec=refresh)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
