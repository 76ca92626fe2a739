"""Bounded-size multi-row upserts.

Every bulk write in a sync goes through ``upsert_in_batches`` so that single
statements stay within driver parameter limits and share one conflict policy.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from mangasync.exceptions import StoreWriteError

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable, Iterator, Sequence

    from sqlalchemy import Table
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DIALECT_INSERTS: dict[str, Callable[..., Any]] = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def chunked(rows: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most ``size`` rows."""
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


def distinct_by_key(rows: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Drop rows whose key repeats, keeping the last occurrence.

    Rows keep the position of their key's first appearance. A single
    ``ON CONFLICT DO UPDATE`` statement may not touch the same key twice, so
    batches are always fed through this first.
    """
    by_key: dict[Hashable, T] = {}
    for row in rows:
        by_key[key(row)] = row
    return list(by_key.values())


def distinct_in_key_order(rows: Iterable[T], key: Callable[[T], Any]) -> list[T]:
    """Like ``distinct_by_key``, but ordered by key instead of first appearance.

    Upserts fed in key order lock overlapping rows in the same order on every
    connection.
    """
    return sorted(distinct_by_key(rows, key), key=key)


def supports_upsert(dialect: str) -> bool:
    return dialect in _DIALECT_INSERTS


def _dialect_insert(session: AsyncSession) -> Callable[..., Any]:
    dialect = session.get_bind().dialect.name
    try:
        return _DIALECT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Upserts are not supported on dialect {dialect!r}") from None


async def upsert_in_batches(
    session: AsyncSession,
    table: Table,
    rows: Sequence[dict[str, Any]],
    *,
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
    batch_size: int,
    operation: str,
) -> int:
    """Write ``rows`` into ``table`` with one upsert statement per batch.

    Conflicting rows get every column in ``update_columns`` overwritten by the
    incoming value; with no update columns, conflicts are ignored. Statements
    run sequentially inside the caller's transaction. The first failing batch
    raises ``StoreWriteError`` and nothing after it is attempted; rollback is
    the caller's job.

    Returns the number of statements executed.
    """
    if not rows:
        return 0

    insert = _dialect_insert(session)
    batches = list(chunked(rows, batch_size))
    for number, batch in enumerate(batches, start=1):
        stmt = insert(table).values(list(batch))
        if update_columns:
            stmt = stmt.on_conflict_do_update(
                index_elements=list(conflict_columns),
                set_={column: stmt.excluded[column] for column in update_columns},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))
        try:
            await session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.debug("%s failed on batch %d/%d", operation, number, len(batches))
            raise StoreWriteError(operation, table.name, number, len(batches)) from exc

    logger.debug("%s: %d rows in %d statements", operation, len(rows), len(batches))
    return len(batches)
