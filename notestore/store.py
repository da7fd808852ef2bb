import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import sessionmaker

from notestore.db import make_session_factory, session_scope
from notestore.exceptions import DuplicateNoteError, NoteConstraintError, NoteNotFoundError
from notestore.models import Note, utcnow
from notestore.schemas import AuthorNotes, FilteredNote, NoteCreate, NoteOut, NoteQuery, as_utc

logger = logging.getLogger(__name__)

# SQLSTATE for unique_violation; the only unique constraint on notes is its primary key.
PG_UNIQUE_VIOLATION = "23505"


def _is_duplicate_key(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == PG_UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(orig)


class NoteStore:
    """
    Append-only store of encrypted notes, keyed by (author, date).

    Every operation runs in its own short-lived session. There is no update or
    delete path: a note is written once and then only read.
    """

    def __init__(self, bind: Union[Engine, sessionmaker]):
        if isinstance(bind, sessionmaker):
            self._session_factory = bind
        else:
            self._session_factory = make_session_factory(bind)

    # PUBLIC_INTERFACE
    def append(self, payload: NoteCreate) -> NoteOut:
        """Insert a note; ``date`` defaults to the current UTC time."""
        date = payload.date or utcnow()
        logger.info(
            "Appending note author=%s iv_len=%s content_len=%s",
            payload.author,
            len(payload.iv or ""),
            len(payload.content or ""),
        )
        note = Note(author=payload.author, date=date, iv=payload.iv, content=payload.content)
        try:
            with session_scope(self._session_factory) as db:
                db.add(note)
                db.commit()
        except IntegrityError as exc:
            if _is_duplicate_key(exc):
                logger.warning("Duplicate note rejected author=%s date=%s", payload.author, date.isoformat())
                raise DuplicateNoteError(payload.author, date) from exc
            raise NoteConstraintError(str(exc.orig)) from exc
        except DataError as exc:
            raise NoteConstraintError(str(exc.orig)) from exc
        except Exception as exc:
            logger.exception("Failed appending note due to database error: %s", str(exc))
            raise
        return NoteOut.model_validate(note)

    # PUBLIC_INTERFACE
    def list_notes(self, author: str, since: Optional[datetime] = None) -> List[NoteOut]:
        """List an author's notes oldest first, optionally only those after ``since``."""
        query = NoteQuery(author=author, since=since)
        with session_scope(self._session_factory) as db:
            q = db.query(Note).filter(Note.author == query.author)
            if query.since is not None:
                q = q.filter(Note.date > query.since)
            notes = q.order_by(Note.date.asc()).all()
            logger.debug("Listed %s notes for author=%s since=%s", len(notes), query.author, query.since)
            return [NoteOut.model_validate(note) for note in notes]

    # PUBLIC_INTERFACE
    def author_notes(self, author: str, since: Optional[datetime] = None) -> AuthorNotes:
        """Same as :meth:`list_notes`, grouped under the author."""
        notes = self.list_notes(author, since)
        return AuthorNotes(
            author=author.strip(),
            notes=[FilteredNote(date=n.date, iv=n.iv, content=n.content) for n in notes],
        )

    # PUBLIC_INTERFACE
    def get(self, author: str, date: datetime) -> NoteOut:
        """Fetch one note by its composite key."""
        key = (author.strip(), as_utc(date))
        with session_scope(self._session_factory) as db:
            note = db.get(Note, key)
            if note is None:
                raise NoteNotFoundError(f"Note not found for author={key[0]!r} at {key[1].isoformat()}")
            return NoteOut.model_validate(note)

    # PUBLIC_INTERFACE
    def health(self) -> Dict[str, Any]:
        """Verify database connectivity with SELECT 1; never raises."""
        try:
            with session_scope(self._session_factory) as db:
                value = db.execute(text("SELECT 1")).scalar_one()
            return {"status": "up", "query": "SELECT 1", "result": int(value)}
        except Exception as exc:
            logger.warning("Database health check failed: %s", exc)
            return {"status": "down", "error": str(exc)}
