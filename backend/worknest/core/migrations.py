"""
Worknest - Schema Migrations
============================

Runs the Alembic revisions shipped in ``worknest/alembic`` against a
``Database``.

Detecting the current revision and applying the pending ones happen on
one connection inside one transaction, so concurrent starters cannot both
apply the same revision, and a failed revision leaves the schema at the
last fully applied one.
"""

from pathlib import Path
from typing import Optional

import structlog
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from worknest.core.database import Database
from worknest.core.errors import StorageError

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "alembic"


def alembic_config(url: Optional[str] = None) -> Config:
    """Alembic config pointing at the bundled revisions, no ini file needed."""
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    if url:
        config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def head_revision() -> Optional[str]:
    return ScriptDirectory.from_config(alembic_config()).get_current_head()


def _current_revision(connection: Connection) -> Optional[str]:
    return MigrationContext.configure(connection).get_current_revision()


def _upgrade(connection: Connection, config: Config) -> Optional[str]:
    before = _current_revision(connection)
    config.attributes["connection"] = connection
    command.upgrade(config, "head")
    after = _current_revision(connection)
    if before != after:
        logger.info("Applied migrations", from_revision=before, to_revision=after)
    return after


async def run_migrations(database: Database) -> Optional[str]:
    """
    Bring the schema up to the newest revision. Idempotent.

    Returns the revision the store is at afterwards.

    Raises:
        StorageError: a revision failed to apply
    """
    config = alembic_config(database.url)
    try:
        async with database.engine.begin() as connection:
            revision = await connection.run_sync(_upgrade, config)
    except SQLAlchemyError as exc:
        logger.error("Migration failed", error=str(exc))
        raise StorageError("Schema migration failed") from exc

    logger.info("Database schema ready", revision=revision)
    return revision


async def current_revision(database: Database) -> Optional[str]:
    async with database.engine.connect() as connection:
        return await connection.run_sync(_current_revision)
