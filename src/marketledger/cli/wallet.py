"""Wallet subcommand: deposit, balance."""

from __future__ import annotations

import typer

from marketledger.cli.session import ledger_session
from marketledger.units import format_amount, parse_amount

app = typer.Typer(help="Play-money balances")


@app.command("deposit")
def deposit(
    ctx: typer.Context,
    account: str = typer.Argument(...),
    amount: str = typer.Argument(..., help="Whole units"),
) -> None:
    """Credit an account."""
    with ledger_session(ctx.obj["settings"]) as engine:
        balance = engine.deposit(account, parse_amount(amount))
        typer.echo(f"{account}: {format_amount(balance)}")


@app.command("balance")
def balance(ctx: typer.Context, account: str = typer.Argument(...)) -> None:
    """Show an account balance."""
    with ledger_session(ctx.obj["settings"]) as engine:
        typer.echo(f"{account}: {format_amount(engine.balance_of(account))}")
