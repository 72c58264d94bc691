from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from .errors import InvalidArgument
from .store import EntryStore
from .timeparse import EMPTY_MESSAGE, format_cutoff, resolve_cutoff


logger = logging.getLogger("entry_expiration")


@dataclass(frozen=True)
class RunResult:
    cutoff: datetime
    matched: int
    deleted: int
    dry_run: bool

    @property
    def noop(self) -> bool:
        return self.matched == 0


class Reporter(Protocol):
    def log(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...


class LogReporter:
    """Send status messages to the `entry_expiration` logger."""

    def log(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)

    def success(self, message: str) -> None:
        logger.info("Success: %s", message)


def run(
    duration: str,
    dry_run: bool,
    store: EntryStore,
    *,
    now: datetime | None = None,
    reporter: Reporter | None = None,
) -> RunResult:
    """Delete (or count, in dry-run mode) entries older than ``duration``.

    Parameters
    ----------
    duration:
        Relative time expression such as ``6months``, ``1year`` or ``90days``.
    dry_run:
        If True, do not delete; just report what would be deleted.
    store:
        Record store queried and, outside dry-run mode, mutated.
    now:
        Reference time for the cutoff (defaults to the current local time).
    reporter:
        Receives the human-readable status messages.

    Raises InvalidArgument before touching the store when the duration is
    empty or unreadable. Store failures propagate as StoreError.
    """

    out = reporter or LogReporter()

    if not str(duration or "").strip():
        raise InvalidArgument(EMPTY_MESSAGE)

    cutoff = resolve_cutoff(duration, now=now)
    cutoff_str = format_cutoff(cutoff)
    out.log(f"Start the cleaning process for entries before : {cutoff_str}")

    total = store.count_older_than(cutoff_str)
    if total == 0:
        out.warning("No entries to delete.")
        return RunResult(cutoff=cutoff, matched=0, deleted=0, dry_run=dry_run)

    deleted = 0
    if dry_run:
        out.warning(f"Dry run: {total} entries would be deleted")
    else:
        # Rows can change between the count and the delete; report what the delete did.
        deleted = store.delete_older_than(cutoff_str)
        out.success(f"{deleted} entries deleted")

    out.success("End cleaning forms expired entries")
    return RunResult(cutoff=cutoff, matched=total, deleted=deleted, dry_run=dry_run)
