from datetime import datetime, timezone

from sqlalchemy import CHAR, CheckConstraint, Column, DateTime, PrimaryKeyConstraint, String, func

from notestore.db import Base

AUTHOR_MAX_LENGTH = 32
IV_LENGTH = 24
CONTENT_MAX_LENGTH = 102400


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    SQLAlchemy model representing one encrypted note.

    Rows are inserted once and never updated or deleted. ``iv`` and ``content``
    are opaque to the store. The CHECK constraints repeat the column lengths so
    that backends which do not enforce VARCHAR/CHAR sizes (SQLite) and CHAR
    padding (PostgreSQL) still reject bad rows.
    """
    __tablename__ = "notes"
    __table_args__ = (
        PrimaryKeyConstraint("author", "date", name="notes_pkey"),
        CheckConstraint(f"length(author) <= {AUTHOR_MAX_LENGTH}", name="ck_notes_author_length"),
        CheckConstraint(f"length(iv) = {IV_LENGTH}", name="ck_notes_iv_length"),
        CheckConstraint(f"length(content) <= {CONTENT_MAX_LENGTH}", name="ck_notes_content_length"),
    )

    author = Column(String(AUTHOR_MAX_LENGTH), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    iv = Column(CHAR(IV_LENGTH), nullable=False)
    content = Column(String(CONTENT_MAX_LENGTH), nullable=False)

    def __repr__(self) -> str:
        return f"<Note author={self.author!r} date={self.date!r}>"
