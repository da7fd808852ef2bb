"""notestore -- per-author, append-only store of encrypted notes."""

__version__ = "0.1.0"
