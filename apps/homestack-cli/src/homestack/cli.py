"""Root Typer application for the homestack CLI."""

from __future__ import annotations

import logging

import click
import typer
from rich.logging import RichHandler

from homestack.commands import cert, lifecycle, stack
from homestack.console import console, error
from homestack.errors import HomestackError

app = typer.Typer(
    name="homestack",
    help="Bring the Bitcoin, media and reverse-proxy compose stacks up and down in order.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every docker/certbot command."),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


app.command(name="setup")(lifecycle.setup)
app.command(name="start")(lifecycle.start)
app.command(name="stop")(lifecycle.stop)
app.command(name="status")(lifecycle.status)
app.add_typer(stack.app, name="stack", help="Single-unit compose operations.")
app.add_typer(cert.app, name="cert", help="SSL certificate management.")


def main() -> None:
    """Console entry point: usage errors and HomestackError exit with status 1."""
    try:
        rv = app(standalone_mode=False)
    except click.UsageError as exc:
        exc.show()
        raise SystemExit(1) from None
    except click.Abort:
        error("Aborted.")
        raise SystemExit(1) from None
    except HomestackError as exc:
        error(str(exc))
        raise SystemExit(exc.exit_code) from None
    raise SystemExit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    main()
