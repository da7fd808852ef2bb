"""Shared test fixtures -- an in-memory SQLite note store."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from notestore.migrate import init_db
from notestore.store import NoteStore

# base64 of a 16-byte IV is always 24 characters
VALID_IV = "q2Vz0Jx4cN8yT1bLm5Rw7A=="


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    return NoteStore(engine)


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'notes.db'}"


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "NOTESTORE_DATABASE_URL",
        "DATABASE_URL",
        "POSTGRES_USER",
        "POSTGRES_PASSWORD",
        "POSTGRES_DB",
        "POSTGRES_PORT",
        "POSTGRES_HOST",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
