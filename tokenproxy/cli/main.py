"""Main entry point for the token proxy CLI."""

import typer

from tokenproxy._version import __version__
from tokenproxy.cli.helpers import get_rich_toolkit

from .commands.config import show_config
from .commands.serve import serve


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        toolkit = get_rich_toolkit()
        toolkit.print(f"tokenproxy {__version__}", tag="version")
        raise typer.Exit()


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=True,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)


@app.callback()
def app_main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """OAuth2 authorization-code exchange proxy for browser-only clients."""


app.command(name="serve")(serve)
app.command(name="config")(show_config)


def main() -> None:
    """Entry point for the console script."""
    app()


if __name__ == "__main__":
    main()
