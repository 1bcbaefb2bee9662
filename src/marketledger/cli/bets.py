"""Bet subcommand: place, show, reveal, claim."""

from __future__ import annotations

import typer

from marketledger.cli.session import Side, ledger_session
from marketledger.units import format_amount, parse_amount

app = typer.Typer(help="Bet placement, lookup and claiming")


@app.command("place")
def place(
    ctx: typer.Context,
    market_id: int = typer.Argument(...),
    amount: str = typer.Argument(..., help='Stake in whole units, e.g. "0.1"'),
    side: Side = typer.Option(..., "--side", "-s", help="Predicted side"),
    participant: str = typer.Option(..., "--as", help="Betting account"),
) -> None:
    """Place a bet; the stake moves into escrow."""
    with ledger_session(ctx.obj["settings"]) as engine:
        engine.place_bet(market_id, side.as_bool, parse_amount(amount), participant)
        typer.echo(f"Bet placed on market {market_id} by {participant}")


@app.command("show")
def show(
    ctx: typer.Context,
    market_id: int = typer.Argument(...),
    participant: str = typer.Option(..., "--as", help="Betting account"),
) -> None:
    """Show whether a bet exists and has been claimed."""
    with ledger_session(ctx.obj["settings"]) as engine:
        exists, claimed = engine.get_bet(market_id, participant)
        typer.echo(f"exists={exists} claimed={claimed}")


@app.command("reveal")
def reveal(
    ctx: typer.Context,
    market_id: int = typer.Argument(...),
    participant: str = typer.Option(..., "--bettor", help="Account that placed the bet"),
    viewer: str = typer.Option(..., "--as", help="Viewing account (needs access to the bet)"),
) -> None:
    """Show a bet's amount and side to an authorized viewer."""
    with ledger_session(ctx.obj["settings"]) as engine:
        bet = engine.reveal_bet(market_id, participant, viewer)
        side = "yes" if bet.prediction else "no"
        typer.echo(f"{bet.participant}: {format_amount(bet.amount)} on {side} (claimed={bet.claimed})")


@app.command("claim")
def claim(
    ctx: typer.Context,
    market_id: int = typer.Argument(...),
    participant: str = typer.Option(..., "--as", help="Winning account"),
) -> None:
    """Claim winnings on a resolved market."""
    with ledger_session(ctx.obj["settings"]) as engine:
        instruction = engine.claim_winnings(market_id, participant)
        typer.echo(f"Paid {format_amount(instruction.amount)} to {participant}")
