"""Serve command for the token proxy API server."""

import os
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
import uvicorn

from tokenproxy.api.app import create_app
from tokenproxy.cli.helpers import get_rich_toolkit
from tokenproxy.config.settings import (
    ENV_FILE_VAR,
    ConfigurationError,
    Settings,
    default_env_file,
    load_settings,
)
from tokenproxy.core.logging import get_logger, setup_logging


def validate_port(
    ctx: typer.Context, param: typer.CallbackParam, value: int | None
) -> int | None:
    """Validate port number."""
    if value is None:
        return None

    if value < 1 or value > 65535:
        raise typer.BadParameter("Port must be between 1 and 65535")

    return value


def validate_log_level(
    ctx: typer.Context, param: typer.CallbackParam, value: str | None
) -> str | None:
    """Validate log level."""
    if value is None:
        return None

    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in valid_levels:
        raise typer.BadParameter(f"Log level must be one of: {', '.join(sorted(valid_levels))}")

    return value.upper()


def build_overrides(
    host: str | None = None,
    port: int | None = None,
    reload: bool | None = None,
    log_level: str | None = None,
) -> dict[str, Any]:
    """Collect CLI values that take precedence over the environment."""
    server: dict[str, Any] = {
        key: value
        for key, value in {"host": host, "port": port, "reload": reload}.items()
        if value is not None
    }
    overrides: dict[str, Any] = {}
    if server:
        overrides["server"] = server
    if log_level:
        overrides["logging"] = {"level": log_level}
    return overrides


def load_or_exit(env_file: Path | None, **overrides: Any) -> Settings:
    """Load settings, or print the problem and exit with status 1."""
    try:
        return load_settings(env_file=env_file or default_env_file(), **overrides)
    except ConfigurationError as e:
        toolkit = get_rich_toolkit()
        toolkit.print(f"Configuration error: {e.message}", tag="error")
        raise typer.Exit(1) from e


def export_worker_environment(
    settings: Settings, env_file: Path | None = None
) -> dict[str, str]:
    """Publish the resolved server settings and env file to child processes.

    Reloader and worker processes build the app through the factory and read
    their configuration from the environment, which outranks the env file.
    """
    exported = {
        "SERVER__HOST": settings.server.host,
        "SERVER__PORT": str(settings.server.port),
        "LOGGING__LEVEL": settings.logging.level,
        "LOGGING__FORMAT": settings.logging.format,
    }
    if env_file is not None:
        exported[ENV_FILE_VAR] = str(env_file.resolve())
    os.environ.update(exported)
    return exported


def _run_local_server(settings: Settings, env_file: Path | None = None) -> None:
    """Run the server locally under uvicorn."""
    logger = get_logger(__name__)

    logger.debug(
        "server_starting",
        host=settings.server.host,
        port=settings.server.port,
        url=settings.server_url,
    )

    if settings.server.reload or settings.server.workers > 1:
        export_worker_environment(settings, env_file)
        uvicorn.run(
            app="tokenproxy.api.app:create_app",
            factory=True,
            host=settings.server.host,
            port=settings.server.port,
            reload=settings.server.reload,
            workers=settings.server.workers,
            log_config=None,
            server_header=False,
            reload_includes=["tokenproxy"] if settings.server.reload else None,
        )
        return

    uvicorn.run(
        app=create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
        server_header=False,
    )


def serve(
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
            rich_help_panel="Configuration",
        ),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option(
            "--port",
            "-p",
            help="Port to run the server on",
            callback=validate_port,
            rich_help_panel="Server Settings",
        ),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option(
            "--host",
            "-h",
            help="Host to bind the server to",
            rich_help_panel="Server Settings",
        ),
    ] = None,
    reload: Annotated[
        bool | None,
        typer.Option(
            "--reload/--no-reload",
            help="Enable auto-reload for development",
            rich_help_panel="Server Settings",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
            callback=validate_log_level,
            rich_help_panel="Server Settings",
        ),
    ] = None,
) -> None:
    """Start the token exchange proxy server."""
    settings = load_or_exit(
        env_file,
        **build_overrides(host=host, port=port, reload=reload, log_level=log_level),
    )

    setup_logging(
        json_logs=settings.logging.use_json(sys.stderr.isatty()),
        log_level_name=settings.logging.level,
    )

    toolkit = get_rich_toolkit()
    toolkit.print_title("Starting token exchange proxy", tag="server")
    toolkit.print(f"Listening on {settings.server_url}", tag="server")
    toolkit.print(f"Token endpoint: {settings.provider.token_url}", tag="config")
    toolkit.print_line()

    _run_local_server(settings, env_file)
