"""Typer CLI root: ``ems-api serve``, ``ems-api version`` and the db/user groups."""

import typer

from ems_api import __version__
from ems_api.core.config import get_settings
from ems_api.core.logging import setup_logging

app = typer.Typer(name="ems-api", help="Employee management API CLI", no_args_is_help=True)


@app.callback()
def _main_callback(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL for this command"),
) -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("127.0.0.1", "--host", help="Bind host"),
    port: int = typer.Option(5000, "--port", help="Bind port"),
    workers: int = typer.Option(1, "--workers", min=1, help="Worker processes (ignored with --reload)"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "ems_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=None if reload else workers,
    )


@app.command()
def version() -> None:
    """Print the installed version."""
    typer.echo(f"ems-api {__version__}")


def _register_subcommands() -> None:
    from ems_api.cli.db_cmd import db_app
    from ems_api.cli.user_cmd import user_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(user_app, name="user", help="User account commands")


_register_subcommands()
