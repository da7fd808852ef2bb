"""notestore CLI: migrate the database, append and list encrypted notes.

The CLI never sees plaintext: ``--iv`` and ``--content`` are stored exactly
as given.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from alembic.util import CommandError
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from notestore import migrate
from notestore.db import build_database_url, create_db_engine
from notestore.exceptions import ConfigurationError, DuplicateNoteError, NoteStoreError
from notestore.schemas import NoteCreate, NoteQuery
from notestore.store import NoteStore

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="notestore",
    help="notestore -- per-author, append-only store of encrypted notes.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(level: str) -> None:
    resolved = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s [%(name)s:%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(resolved)


def _redacted(url: str) -> str:
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable URL>"


def _fail(message: str, code: int = 1) -> None:
    err_console.print(f"[red]{message}[/red]")
    raise typer.Exit(code=code)


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        where = ".".join(str(p) for p in err["loc"])
        parts.append(f"{where}: {err['msg']}")
    return "Invalid input -- " + "; ".join(parts)


def _store(ctx: typer.Context) -> NoteStore:
    try:
        return NoteStore(create_db_engine(ctx.obj["database_url"]))
    except ConfigurationError as exc:
        _fail(str(exc))


@app.callback()
def main(
    ctx: typer.Context,
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="SQLAlchemy URL; defaults to NOTESTORE_DATABASE_URL / DATABASE_URL."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (env LOG_LEVEL)."),
):
    load_dotenv()
    _configure_logging(log_level or os.getenv("LOG_LEVEL", "WARNING"))
    ctx.obj = {"database_url": database_url or build_database_url()}
    logger.debug("Using database %s", _redacted(ctx.obj["database_url"]))


@app.command("migrate")
def migrate_cmd(
    ctx: typer.Context,
    revision: str = typer.Option("head", "--revision", help="Target revision."),
):
    """Apply pending schema migrations."""
    try:
        migrate.upgrade(ctx.obj["database_url"], revision)
    except ArgumentError:
        _fail(f"Invalid database URL: {_redacted(ctx.obj['database_url'])}")
    except (CommandError, SQLAlchemyError) as exc:
        _fail(f"Migration failed: {exc}")
    console.print(f"[green]Database migrated to {revision}[/green]")


@app.command("downgrade")
def downgrade_cmd(
    ctx: typer.Context,
    revision: str = typer.Argument(..., help="Target revision, e.g. 'base'."),
):
    """Revert schema migrations down to REVISION."""
    try:
        migrate.downgrade(ctx.obj["database_url"], revision)
    except ArgumentError:
        _fail(f"Invalid database URL: {_redacted(ctx.obj['database_url'])}")
    except (CommandError, SQLAlchemyError) as exc:
        _fail(f"Migration failed: {exc}")
    console.print(f"[yellow]Database downgraded to {revision}[/yellow]")


@app.command("schema")
def schema_cmd(
    dialect: str = typer.Option("postgresql", "--dialect", help="postgresql or sqlite"),
):
    """Print the CREATE TABLE statement for the notes table."""
    try:
        ddl = migrate.render_schema(dialect)
    except ValueError as exc:
        _fail(str(exc))
    typer.echo(ddl + ";")


@app.command("append")
def append_cmd(
    ctx: typer.Context,
    author: str = typer.Argument(..., help="Author identifier (max 32 chars)."),
    iv: str = typer.Option(..., "--iv", help="24-character initialization vector."),
    content: Optional[str] = typer.Option(None, "--content", help="Encrypted content."),
    file: Optional[Path] = typer.Option(None, "--file", exists=True, dir_okay=False, help="Read content from a file."),
    date: Optional[str] = typer.Option(None, "--date", help="ISO 8601 timestamp; defaults to now."),
):
    """Append one note for AUTHOR."""
    if (content is None) == (file is None):
        _fail("Pass exactly one of --content or --file.")
    if file is not None:
        try:
            content = file.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError) as exc:
            _fail(f"--file must contain text (e.g. base64 ciphertext): {exc}")

    try:
        payload = NoteCreate(author=author, iv=iv, content=content, date=date)
    except ValidationError as exc:
        _fail(_validation_message(exc))

    store = _store(ctx)
    try:
        note = store.append(payload)
    except DuplicateNoteError as exc:
        _fail(str(exc), code=2)
    except NoteStoreError as exc:
        _fail(f"Note rejected: {exc}")
    except SQLAlchemyError as exc:
        _fail(f"Database error: {exc}")

    typer.echo(note.model_dump_json())


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    author: str = typer.Argument(..., help="Author identifier."),
    since: Optional[str] = typer.Option(None, "--since", help="Only notes after this ISO 8601 timestamp."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
):
    """List AUTHOR's notes, oldest first."""
    try:
        query = NoteQuery(author=author, since=since)
    except ValidationError as exc:
        _fail(_validation_message(exc))

    store = _store(ctx)
    try:
        result = store.author_notes(query.author, query.since)
    except SQLAlchemyError as exc:
        _fail(f"Database error: {exc}")

    if as_json:
        typer.echo(result.model_dump_json())
        return

    table = Table(title=f"Notes by {result.author}")
    table.add_column("Date", style="cyan")
    table.add_column("IV")
    table.add_column("Size", justify="right")
    for note in result.notes:
        table.add_row(note.date.isoformat(), note.iv, str(len(note.content)))
    console.print(table)


@app.command("health")
def health_cmd(ctx: typer.Context):
    """Check database connectivity."""
    status = _store(ctx).health()
    if status["status"] == "up":
        console.print("[green]database: up[/green]")
        return
    _fail(f"database: down ({status['error']})")


if __name__ == "__main__":
    app()
