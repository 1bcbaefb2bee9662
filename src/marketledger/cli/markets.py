"""Markets subcommand: create, list, show, resolve, withdraw."""

from __future__ import annotations

import typer

from marketledger.cli.session import Side, ledger_session
from marketledger.units import format_amount

app = typer.Typer(help="Market creation, listing, resolution and emergency recovery")


@app.command("create")
def create(
    ctx: typer.Context,
    question: str = typer.Argument(..., help="Proposition being bet on"),
    duration: int = typer.Option(7 * 24 * 60 * 60, "--duration", "-d", help="Seconds until betting closes"),
    creator: str = typer.Option(..., "--as", help="Creating account"),
) -> None:
    """Create a market; prints its id."""
    with ledger_session(ctx.obj["settings"]) as engine:
        market_id = engine.create_market(question, duration, creator)
        market = engine.get_market(market_id)
        typer.echo(f"Created market {market_id} (ends at {market.end_time})")


@app.command("list")
def list_markets(ctx: typer.Context) -> None:
    """List all markets with state and pools."""
    with ledger_session(ctx.obj["settings"]) as engine:
        now = engine.clock.now()
        markets = engine.list_markets()
        for m in markets:
            typer.echo(
                f"  {m.market_id:>4}  {m.state(now).value:<8}  "
                f"yes={format_amount(m.total_yes_amount)}  no={format_amount(m.total_no_amount)}  "
                f"{m.question[:60]}"
            )
        typer.echo(f"Total: {len(markets)} markets")


@app.command("show")
def show(ctx: typer.Context, market_id: int = typer.Argument(...)) -> None:
    """Show one market."""
    with ledger_session(ctx.obj["settings"]) as engine:
        m = engine.get_market(market_id)
        typer.echo(f"Market {m.market_id}: {m.question}")
        typer.echo(f"  creator: {m.creator}  state: {m.state(engine.clock.now()).value}")
        typer.echo(f"  created_at: {m.created_at}  end_time: {m.end_time}")
        typer.echo(f"  yes pool: {format_amount(m.total_yes_amount)}  no pool: {format_amount(m.total_no_amount)}")
        typer.echo(f"  escrow: {format_amount(m.escrow_balance)}  bets: {len(engine.bets_for_market(market_id))}")
        if m.resolved:
            typer.echo(f"  outcome: {'yes' if m.outcome else 'no'}  resolved_at: {m.resolved_at}")
            typer.echo(f"  emergency unlock: {engine.recovery.unlock_time(market_id)}")


@app.command("resolve")
def resolve(
    ctx: typer.Context,
    market_id: int = typer.Argument(...),
    outcome: Side = typer.Option(..., "--outcome", "-o", help="Resolved outcome"),
    caller: str = typer.Option(..., "--as", help="Resolving account (must be the creator)"),
) -> None:
    """Resolve a closed market (creator only)."""
    with ledger_session(ctx.obj["settings"]) as engine:
        engine.resolve_market(market_id, outcome.as_bool, caller)
        typer.echo(f"Market {market_id} resolved: {outcome.value}")


@app.command("withdraw")
def withdraw(
    ctx: typer.Context,
    market_id: int = typer.Argument(...),
    caller: str = typer.Option(..., "--as", help="Market creator"),
) -> None:
    """Emergency withdrawal of remaining escrow after the timelock (creator only)."""
    with ledger_session(ctx.obj["settings"]) as engine:
        amount = engine.emergency_withdraw(market_id, caller)
        typer.echo(f"Withdrew {format_amount(amount)} from market {market_id} to {caller}")
