"""Database migration commands, driving Alembic programmatically.

``--database-url`` overrides ``DATABASE_URL`` for one invocation, which is how
a fresh SQLite file or a staging database gets migrated without editing env.
"""

from typing import TYPE_CHECKING

import typer
from loguru import logger

if TYPE_CHECKING:
    from alembic.config import Config

db_app = typer.Typer()

_CONFIG_OPTION = typer.Option("alembic.ini", "--config", "-c", help="Path to alembic.ini")
_URL_OPTION = typer.Option(None, "--database-url", help="Migrate this database instead of DATABASE_URL")


def _alembic_config(path: str, database_url: str | None) -> "Config":
    from alembic.config import Config

    config = Config(path)
    if database_url:
        config.set_main_option("sqlalchemy.url", database_url)
    return config


@db_app.command()
def upgrade(
    revision: str = typer.Argument("head", help="Target revision"),
    config: str = _CONFIG_OPTION,
    database_url: str | None = _URL_OPTION,
) -> None:
    """Apply migrations up to ``revision``."""
    from alembic import command

    logger.info(f"Upgrading database to {revision}")
    command.upgrade(_alembic_config(config, database_url), revision)
    typer.echo(f"Database upgraded to {revision}")


@db_app.command()
def downgrade(
    revision: str = typer.Argument("-1", help="Target revision"),
    config: str = _CONFIG_OPTION,
    database_url: str | None = _URL_OPTION,
) -> None:
    """Revert migrations down to ``revision``."""
    from alembic import command

    logger.info(f"Downgrading database to {revision}")
    command.downgrade(_alembic_config(config, database_url), revision)
    typer.echo(f"Database downgraded to {revision}")


@db_app.command()
def current(config: str = _CONFIG_OPTION, database_url: str | None = _URL_OPTION) -> None:
    """Show the revision the database is at."""
    from alembic import command

    command.current(_alembic_config(config, database_url), verbose=True)
