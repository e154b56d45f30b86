"""CLI commands for ballot.

Provides command-line interface using Typer:
- ballot run: Join the election and block until disconnected
- ballot candidates: Show the current candidates in election order

Usage:
    ballot --help
    ballot run --hosts zk1:2181 --namespace /election
    ballot candidates
"""

import typer

from ballot.cli.candidates_cmd import app as candidates_app
from ballot.cli.run_cmd import app as run_app

# Main CLI application
app = typer.Typer(
    name="ballot",
    help="ballot: leader election over Apache ZooKeeper",
    no_args_is_help=True,
)

app.add_typer(run_app, name="run")
app.add_typer(candidates_app, name="candidates")


@app.callback()
def callback() -> None:
    """ballot: leader election over Apache ZooKeeper."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
