"""CLI command for joining the election.

Usage:
    ballot run
    ballot run --hosts zk1:2181,zk2:2181 --namespace /election
    ballot run --log-level debug --json-logs
"""

from __future__ import annotations

import asyncio

import typer

from ballot.cli.options import resolve_settings
from ballot.config import Settings
from ballot.coordination.factory import create_client
from ballot.election.lifecycle import Termination
from ballot.errors import ElectionError
from ballot.observability.logging import bind_instance, configure_logging
from ballot.observability.metrics import start_metrics_server
from ballot.runtime import ElectionNode

app = typer.Typer(help="Join the election and block until disconnected")


async def run_election(config: Settings) -> Termination:
    """Run one participant until its session ends."""
    node = ElectionNode(
        create_client(config),
        namespace=config.election_namespace,
        prefix=config.candidate_prefix,
    )
    return await node.run()


@app.callback(invoke_without_command=True)
def run(
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
    session_timeout: float | None = typer.Option(
        None,
        "--session-timeout",
        "-t",
        help="Session timeout in seconds",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error",
    ),
    json_logs: bool | None = typer.Option(
        None,
        "--json-logs/--console-logs",
        help="Emit JSON log lines",
    ),
) -> None:
    """Volunteer for leadership and follow the election until disconnected."""
    config = resolve_settings(
        zk_hosts=hosts,
        election_namespace=namespace,
        session_timeout=session_timeout,
        log_level=log_level,
        log_json=json_logs,
    )
    configure_logging(json_format=config.log_json, level=config.log_level)
    bind_instance(config.instance_id)

    if config.metrics_port:
        start_metrics_server(config.metrics_port)

    try:
        termination = asyncio.run(run_election(config))
    except ElectionError as e:
        typer.echo(f"Election ended with an error: {e}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo(f"Disconnected ({termination.reason}), exiting application...")
