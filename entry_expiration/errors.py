from __future__ import annotations


class ExpirationError(Exception):
    """Base class for errors raised by entry_expiration."""


class InvalidArgument(ExpirationError, ValueError):
    """The duration argument is missing or cannot be resolved to a cutoff."""


class StoreError(ExpirationError):
    """The record store failed (connection, permission, bad table, ...)."""
