"""Replay subcommand: run, series."""

import typer

from marketledger.replay.engine import ReplayError, replay_from_log, replay_to_pool_series
from marketledger.storage.db import get_connection, init_schema
from marketledger.units import format_amount

app = typer.Typer(help="Deterministic replay of the ledger event log")


@app.command("run")
def run_replay(
    ctx: typer.Context,
    end: int | None = typer.Option(None, "--end", help="Replay only events up to this time (s epoch)"),
) -> None:
    """Rebuild ledger state from the log and print a summary."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        try:
            engine = replay_from_log(conn, settings=settings, end_ts=end)
        except ReplayError as e:
            typer.echo(f"Error [replay]: {e}", err=True)
            raise typer.Exit(1) from e
        markets = engine.list_markets()
        resolved = sum(1 for m in markets if m.resolved)
        typer.echo(f"Replayed into {len(markets)} market(s), {resolved} resolved")
        typer.echo(f"Escrow held: {format_amount(engine.escrow_total)}")
    finally:
        conn.close()


@app.command("series")
def series(
    ctx: typer.Context,
    market: int = typer.Option(..., "--market", "-m", help="Market ID"),
) -> None:
    """Print the yes/no pool totals after each event on a market."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        points = replay_to_pool_series(conn, market, settings=settings)
        typer.echo(f"Replayed {len(points)} events for market {market}")
        for ts, yes, no in points[:20]:
            typer.echo(f"  {ts}  yes={format_amount(yes)}  no={format_amount(no)}")
        if len(points) > 20:
            typer.echo(f"  ... and {len(points) - 20} more")
    finally:
        conn.close()
