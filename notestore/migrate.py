"""Schema management for the notes table.

Production databases are migrated with Alembic (``upgrade``/``downgrade``);
``init_db`` creates the tables straight from the ORM metadata and is meant for
local SQLite files and tests.
"""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.schema import CreateTable

from notestore.db import Base
from notestore.models import Note

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

DIALECTS = {
    "postgresql": postgresql.dialect,
    "sqlite": sqlite.dialect,
}


def alembic_config(url: str) -> Config:
    """Build an Alembic config pointing at the bundled migrations."""
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    # ConfigParser interpolation would choke on percent-encoded passwords.
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def upgrade(url: str, revision: str = "head") -> None:
    logger.info("Upgrading database schema to %s", revision)
    command.upgrade(alembic_config(url), revision)


def downgrade(url: str, revision: str) -> None:
    logger.info("Downgrading database schema to %s", revision)
    command.downgrade(alembic_config(url), revision)


def render_schema(dialect: str = "postgresql") -> str:
    """Return the CREATE TABLE statement for the notes table."""
    try:
        factory = DIALECTS[dialect]
    except KeyError:
        raise ValueError(f"Unsupported dialect {dialect!r}; expected one of {sorted(DIALECTS)}") from None
    return str(CreateTable(Note.__table__).compile(dialect=factory())).strip()


def init_db(engine: Engine) -> None:
    """Create database tables if they do not exist."""
    Base.metadata.create_all(bind=engine)
