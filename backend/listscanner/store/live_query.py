"""
List Scanner Backend — Live Query Subscriptions
================================================

What:  A subscribable read: yields the current result of a query, then a new
       snapshot after every committed transaction that touched one of the
       tables the query depends on.
How:   The DataStore keeps the set of open LiveQuery objects. After a commit
       (still holding the write lock) it re-runs each affected query and
       queues the snapshot, replacing one the subscriber has not read yet.
Who:   Returned by the DAOs' `observe_*` methods; consumed by repositories,
       services and tests.

Usage:
    async with item_dao.observe_for_list(list_id) as items_stream:
        items = await items_stream.next()      # initial snapshot
        ...                                    # some other task writes
        items = await items_stream.next()      # post-commit snapshot

    # or
    async for snapshot in list_dao.observe_all():
        ...

Closing a subscription only unregisters it; nothing is written.
"""

import asyncio
import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    FrozenSet,
    Generic,
    Iterable,
    Optional,
    TypeVar,
)

from sqlalchemy.ext.asyncio import AsyncSession

if TYPE_CHECKING:
    from listscanner.store.data_store import DataStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryFn = Callable[[AsyncSession], Awaitable[T]]

_CLOSED: Any = object()


class LiveQuery(Generic[T]):
    """An open subscription to a query's result set."""

    def __init__(self, store: "DataStore", query: QueryFn, tables: Iterable[str]):
        self._store = store
        self._query = query
        self.tables: FrozenSet[str] = frozenset(tables)
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self._started = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def depends_on(self, tables: Iterable[str]) -> bool:
        return not self.tables.isdisjoint(tables)

    async def refresh(self) -> None:
        """
        Re-run the query and queue the snapshot (called by the DataStore).

        At most one snapshot is queued: a slow consumer skips intermediate
        states and reads the latest one.
        """
        if self._closed:
            return
        snapshot = await self._store.read(self._query)
        if self._closed:
            return
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(snapshot)

    def __aiter__(self) -> "LiveQuery[T]":
        return self

    async def __anext__(self) -> T:
        if self._closed:
            raise StopAsyncIteration

        if not self._started:
            self._started = True
            # A commit may already have queued a fresher snapshot
            if self._queue.empty():
                return await self._store.read(self._query)

        snapshot = await self._queue.get()
        if snapshot is _CLOSED:
            raise StopAsyncIteration
        return snapshot

    async def next(self, timeout: Optional[float] = None) -> T:
        """Wait for the next snapshot; raises StopAsyncIteration once closed."""
        return await asyncio.wait_for(self.__anext__(), timeout)

    def pending(self) -> int:
        """Number of snapshots queued but not yet consumed."""
        return self._queue.qsize()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._store.unsubscribe(self)
        # Wake a consumer blocked in __anext__
        self._queue.put_nowait(_CLOSED)
        logger.debug("Live query on %s closed", sorted(self.tables))

    async def aclose(self) -> None:
        self.close()

    async def __aenter__(self) -> "LiveQuery[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
