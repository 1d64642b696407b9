# src/hubsweep/core/store/kv.py
"""SQL-backed ordered key-value store with time-boxed prefix iteration."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

import structlog
from sqlalchemy import Row, delete, select

from hubsweep.contracts import IterationResult, KeyCallback
from hubsweep.core.clock import DEFAULT_CLOCK, Clock
from hubsweep.core.store.database import StoreDB
from hubsweep.core.store.schema import kv_table

logger = structlog.get_logger(__name__)


def prefix_upper_bound(prefix: bytes) -> bytes | None:
    """Smallest key greater than every key starting with prefix.

    Returns None when no such key exists (prefix is empty or all 0xFF).
    """
    trimmed = prefix.rstrip(b"\xff")
    if not trimmed:
        return None
    return trimmed[:-1] + bytes([trimmed[-1] + 1])


class SqlKeyValueStore:
    """Ordered byte-key store over the ``kv`` table.

    Prefix iteration reads in chunks ordered by key, each chunk fetched in a
    worker thread so the event loop is never blocked on SQL.
    """

    def __init__(self, db: StoreDB, *, clock: Clock | None = None, chunk_size: int = 1000) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self._db = db
        self._clock = clock or DEFAULT_CLOCK
        self._chunk_size = chunk_size

    def put(self, key: bytes, value: bytes) -> None:
        """Insert or replace a single key."""
        self.put_many([(key, value)])

    def put_many(self, items: Iterable[tuple[bytes, bytes]]) -> None:
        """Insert or replace several keys in one transaction."""
        rows = [{"key": k, "value": v} for k, v in items]
        if not rows:
            return
        with self._db.connection() as conn:
            conn.execute(delete(kv_table).where(kv_table.c.key.in_([r["key"] for r in rows])))
            conn.execute(kv_table.insert(), rows)

    def get(self, key: bytes) -> bytes | None:
        with self._db.connection() as conn:
            row = conn.execute(select(kv_table.c.value).where(kv_table.c.key == key)).fetchone()
        return None if row is None else row.value

    def delete(self, key: bytes) -> None:
        with self._db.connection() as conn:
            conn.execute(delete(kv_table).where(kv_table.c.key == key))

    def _fetch_chunk(self, prefix: bytes, after: bytes | None) -> Sequence[Row]:
        query = select(kv_table.c.key, kv_table.c.value)
        if after is None:
            query = query.where(kv_table.c.key >= prefix)
        else:
            query = query.where(kv_table.c.key > after)
        upper = prefix_upper_bound(prefix)
        if upper is not None:
            query = query.where(kv_table.c.key < upper)
        query = query.order_by(kv_table.c.key).limit(self._chunk_size)
        with self._db.engine.connect() as conn:
            return conn.execute(query).fetchall()

    async def for_each_by_prefix(
        self,
        prefix: bytes,
        callback: KeyCallback,
        *,
        timeout_seconds: float,
    ) -> IterationResult:
        """Call callback for every key under prefix, in key order.

        The time box is checked before each key, so a single slow callback
        can overrun it by at most its own duration. Exceptions raised by the
        callback are logged and iteration continues with the next key.

        Args:
            prefix: Key prefix to iterate
            callback: Awaitable called with (key, value)
            timeout_seconds: Time box for the whole iteration

        Returns:
            IterationResult with the number of keys visited and whether the
            time box expired
        """
        deadline = self._clock.monotonic() + timeout_seconds
        visited = 0
        after: bytes | None = None

        while True:
            rows = await asyncio.to_thread(self._fetch_chunk, prefix, after)
            for row in rows:
                if self._clock.monotonic() >= deadline:
                    logger.warning(
                        "prefix iteration timed out",
                        prefix=prefix,
                        visited=visited,
                        timeout_seconds=timeout_seconds,
                    )
                    return IterationResult(visited=visited, timed_out=True)
                visited += 1
                try:
                    await callback(row.key, row.value)
                except Exception as e:
                    logger.warning(
                        "prefix iteration callback failed",
                        prefix=prefix,
                        key=row.key,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
            if len(rows) < self._chunk_size:
                return IterationResult(visited=visited)
            after = rows[-1].key
