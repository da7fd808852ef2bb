import logging
import os
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import declarative_base, sessionmaker

from notestore.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///notes.db"

Base = declarative_base()


def _normalize_sqlalchemy_postgres_url(url: str) -> str:
    """
    Normalize a Postgres URL into a SQLAlchemy psycopg2 URL.

    Accepts:
    - postgres://...
    - postgresql://...
    - postgresql+psycopg2://...

    Returns:
    - postgresql+psycopg2://...
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return url


def _url_from_postgres_parts() -> str | None:
    """
    Compose a URL from POSTGRES_USER/POSTGRES_PASSWORD/POSTGRES_DB/POSTGRES_PORT.

    All four must be set; POSTGRES_HOST is optional and defaults to localhost.
    """
    user = os.getenv("POSTGRES_USER")
    password = os.getenv("POSTGRES_PASSWORD")
    db = os.getenv("POSTGRES_DB")
    port = os.getenv("POSTGRES_PORT")
    if not (user and password and db and port):
        return None
    host = os.getenv("POSTGRES_HOST") or "localhost"
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"


# PUBLIC_INTERFACE
def build_database_url() -> str:
    """
    Build a SQLAlchemy database URL.

    Preference order:
    1) NOTESTORE_DATABASE_URL
    2) DATABASE_URL
    3) POSTGRES_USER/POSTGRES_PASSWORD/POSTGRES_DB/POSTGRES_PORT (compose a URL)
    4) Final fallback: a SQLite file in the working directory
    """
    for name in ("NOTESTORE_DATABASE_URL", "DATABASE_URL"):
        raw = (os.getenv(name) or "").strip()
        if raw:
            return _normalize_sqlalchemy_postgres_url(raw)

    composed = _url_from_postgres_parts()
    if composed:
        return composed

    return DEFAULT_DATABASE_URL


# PUBLIC_INTERFACE
def create_db_engine(url: str, **kwargs) -> Engine:
    """Create an engine for ``url``; SQLite engines may be shared across threads."""
    try:
        parsed = make_url(url)
    except ArgumentError as exc:
        raise ConfigurationError(f"Invalid database URL: {url!r}") from exc

    if parsed.get_backend_name() == "sqlite":
        connect_args = kwargs.setdefault("connect_args", {})
        connect_args.setdefault("check_same_thread", False)

    logger.debug("Creating engine backend=%s database=%s", parsed.get_backend_name(), parsed.database)
    return create_engine(url, pool_pre_ping=True, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    # Notes are immutable once written, so loaded objects stay valid after commit.
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@contextmanager
def session_scope(factory: sessionmaker):
    """
    Context-manager for SQLAlchemy sessions.
    Use like:
        with session_scope(factory) as db:
            ...
    The session is rolled back on error and always closed.
    """
    db = factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
