"""Delete expired form entries from a relational table.

Typical use::

    from entry_expiration import run
    from entry_expiration.store import SqliteEntryStore

    result = run("6months", False, SqliteEntryStore(conn))
"""

from .cleaner import RunResult, run
from .errors import ExpirationError, InvalidArgument, StoreError

__all__ = ["ExpirationError", "InvalidArgument", "RunResult", "StoreError", "run"]
