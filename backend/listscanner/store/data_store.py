"""
List Scanner Backend — Data Store (Transactions & Change Notification)
=======================================================================

What:  The persistence capability the core consumes: transactional writes,
       read sessions, and live (subscribable) queries over photos, lists
       and items.
How:   Wraps an async SQLAlchemy engine.

Transaction model:
    ┌──────────────┐   acquire    ┌────────────┐  commit   ┌────────────────┐
    │ transaction()│─────────────▶│ write lock │──────────▶│ publish to     │
    │  (top level) │              │  + session │           │ live queries   │
    └──────────────┘              └────────────┘           └────────────────┘
            ▲                                                  │
            │ nested transaction() joins the                   │ release lock
            │ active session (ContextVar)                      ▼

    - One writer at a time: top-level transactions are serialized by an
      asyncio.Lock.
    - A `transaction()` entered while one is already active in the same
      task context reuses its session. It never opens a second top-level
      transaction, so DAO calls made inside the list-creation transaction
      commit or roll back together with it.
    - Writers call `mark_changed(table, ...)`. After a successful commit,
      and before the lock is released, every open LiveQuery that depends
      on a changed table receives a fresh snapshot. A rollback publishes
      nothing.

Concurrency:
    AsyncSession objects are not safe for concurrent use. Code running
    inside a transaction must not fan out work that uses the store into
    parallel tasks.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Iterable, List, Optional, Set, TypeVar

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from listscanner.database import build_engine, build_session_factory, create_schema, dispose_engine
from listscanner.store.live_query import LiveQuery, QueryFn

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _ActiveTransaction:
    store: "DataStore"
    session: AsyncSession
    changed_tables: Set[str] = field(default_factory=set)


_active_transaction: ContextVar[Optional[_ActiveTransaction]] = ContextVar(
    "listscanner_active_transaction", default=None
)


class DataStore:
    """
    Transactional access to the list scanner database.

    Typically one instance per application (created in `create_app()` and
    stored on `app.state`); tests create one per temporary database.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session_factory = build_session_factory(engine)
        self._write_lock = asyncio.Lock()
        self._subscriptions: List[LiveQuery] = []

    @classmethod
    def from_url(cls, database_url: Optional[str] = None) -> "DataStore":
        return cls(build_engine(database_url))

    # ── Schema / lifecycle ────────────────────────────────────────────────

    async def create_schema(self) -> None:
        await create_schema(self.engine)

    async def dispose(self) -> None:
        """Close every live query and the engine's connection pool."""
        for live in list(self._subscriptions):
            live.close()
        await dispose_engine(self.engine)

    # ── Transactions ──────────────────────────────────────────────────────

    def _current(self) -> Optional[_ActiveTransaction]:
        active = _active_transaction.get()
        if active is not None and active.store is self:
            return active
        return None

    @property
    def in_transaction(self) -> bool:
        return self._current() is not None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Run a block of writes atomically.

        Commits when the block exits normally, rolls back (and re-raises)
        when it raises. Nested use joins the enclosing transaction.
        """
        active = self._current()
        if active is not None:
            yield active.session
            return

        async with self._write_lock:
            async with self._session_factory() as session:
                active = _ActiveTransaction(store=self, session=session)
                token = _active_transaction.set(active)
                try:
                    async with session.begin():
                        yield session
                finally:
                    _active_transaction.reset(token)

            if active.changed_tables:
                logger.debug("Committed changes to %s", sorted(active.changed_tables))
                await self._publish(active.changed_tables)

    async def run_in_transaction(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Execute `work(session)` inside `transaction()` and return its result."""
        async with self.transaction() as session:
            return await work(session)

    def mark_changed(self, *tables: str) -> None:
        """Record that the active transaction wrote to `tables`."""
        active = self._current()
        if active is None:
            raise RuntimeError("mark_changed() called outside of a transaction")
        active.changed_tables.update(tables)

    # ── Reads ─────────────────────────────────────────────────────────────

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Session for reads: the active transaction's session if there is one
        (so a transaction sees its own uncommitted writes), else a fresh one.
        """
        active = self._current()
        if active is not None:
            yield active.session
            return
        async with self._session_factory() as session:
            yield session

    async def read(self, query: QueryFn) -> T:
        async with self.session() as session:
            return await query(session)

    # ── Live queries ──────────────────────────────────────────────────────

    def observe(self, query: QueryFn, tables: Iterable[str]) -> LiveQuery:
        """
        Subscribe to `query`, re-evaluated after commits touching `tables`.

        The returned LiveQuery yields the current result first.
        """
        live: LiveQuery = LiveQuery(self, query, tables)
        self._subscriptions.append(live)
        return live

    def unsubscribe(self, live: LiveQuery) -> None:
        if live in self._subscriptions:
            self._subscriptions.remove(live)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    async def _publish(self, changed_tables: Set[str]) -> None:
        for live in list(self._subscriptions):
            if not live.depends_on(changed_tables):
                continue
            try:
                await live.refresh()
            except Exception:
                # The transaction is already committed; refresh failures
                # are reported here and never to the writer.
                logger.error(
                    "Failed to refresh live query on %s",
                    sorted(live.tables),
                    exc_info=True,
                )
