"""Application-level exception types.

Convention:
- ``InternalServerError``: for errors whose details must never reach clients
  (store failures during a sync, unreadable snapshots, etc.).  The global
  handler logs the full message at ERROR and returns a generic
  "Internal server error" (500) to the client.
- ``UserNotFoundError``: the authenticated identity has no backing user row.
  Mapped to 401, like any other credential problem.
- ``ValueError``: for input validation errors that are safe to forward to
  clients.  The global ``ValueError`` handler returns ``str(exc)`` as the
  422 detail.

An unchanged sync result is not an error: the reconciler reports it through
``SyncResult.changed`` and the endpoint answers 204.
"""

from __future__ import annotations


class InternalServerError(Exception):
    """Raised for internal errors whose details must not be exposed to clients.

    The global exception handler in ``mangasync/main.py`` catches this, logs
    the full message server-side, and returns HTTP 500 with a generic
    ``"Internal server error"`` detail.
    """


class UserNotFoundError(Exception):
    """The user id carried by a valid token has no row in ``users``."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class StoreWriteError(InternalServerError):
    """A write during a sync transaction failed; the transaction was abandoned."""

    def __init__(self, operation: str, table: str, batch: int = 0, total: int = 0) -> None:
        where = f"{operation} on {table}"
        if total:
            where += f" (batch {batch}/{total})"
        super().__init__(f"Store write failed: {where}")
        self.operation = operation
        self.table = table
        self.batch = batch
        self.total = total


class SnapshotReadError(InternalServerError):
    """The post-commit re-read of a collection failed."""
