"""Config command: show the effective configuration with secrets masked."""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from tokenproxy.cli.commands.serve import load_or_exit


def show_config(
    env_file: Annotated[
        Path | None,
        typer.Option(
            "--env-file",
            "-e",
            help="Path to a .env file with PROVIDER__* and CORS__* values",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
) -> None:
    """Load the configuration and print it (the client secret is masked).

    Exits with status 1 when a required value is missing, so it doubles as a
    deployment check.
    """
    settings = load_or_exit(env_file)
    Console().print_json(json.dumps(settings.model_dump_safe()))
