"""Append-only audit log sink with rotating, self-pruning files."""

__version__ = "0.1.0"
