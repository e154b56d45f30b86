"""CLI command for inspecting the election.

Usage:
    ballot candidates
    ballot candidates --hosts zk1:2181 --namespace /election
"""

from __future__ import annotations

import asyncio

import typer

from ballot.cli.options import resolve_settings
from ballot.config import Settings
from ballot.coordination.factory import create_client
from ballot.election.ordering import order
from ballot.errors import ElectionError

app = typer.Typer(help="Show the current candidates in election order")


async def fetch_candidates(config: Settings) -> list[str]:
    """Return the live candidates of the configured namespace, leader first."""
    client = create_client(config)
    await client.connect(lambda notification: None)
    try:
        return order(await client.list_children(config.election_namespace))
    finally:
        await client.close()


@app.callback(invoke_without_command=True)
def candidates(
    hosts: str | None = typer.Option(
        None,
        "--hosts",
        "-H",
        help="ZooKeeper connect string (host:port,...)",
    ),
    namespace: str | None = typer.Option(
        None,
        "--namespace",
        "-n",
        help="Election namespace",
    ),
) -> None:
    """List candidates in election order and mark the leader."""
    config = resolve_settings(zk_hosts=hosts, election_namespace=namespace)

    try:
        ordered = asyncio.run(fetch_candidates(config))
    except ElectionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    if not ordered:
        typer.echo(f"No candidates under {config.election_namespace}")
        return

    for position, candidate_id in enumerate(ordered):
        marker = "leader" if position == 0 else f"watches {ordered[position - 1]}"
        typer.echo(f"{candidate_id}  {marker}")
