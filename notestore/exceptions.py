"""Exception hierarchy for notestore."""


class NoteStoreError(Exception):
    """Base for all note store errors."""


class ConfigurationError(NoteStoreError):
    """The database could not be configured from the given settings."""


class DuplicateNoteError(NoteStoreError):
    """A note with the same author and date already exists."""

    def __init__(self, author, date):
        super().__init__(f"Note already exists for author={author!r} at {date.isoformat()}")
        self.author = author
        self.date = date


class NoteConstraintError(NoteStoreError):
    """The database rejected a note (not-null, length or check violation)."""


class NoteNotFoundError(NoteStoreError):
    """No note exists for the given author and date."""
