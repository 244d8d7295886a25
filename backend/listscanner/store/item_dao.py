"""
List Scanner Backend — Item Data Access
========================================

CRUD for the `items` table. Reads for a list are always ordered by
`position` (ties broken by id, since positions are gap tolerant and not
unique-constrained).
"""

from typing import Iterable, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from listscanner.models.item import Item
from listscanner.store.data_store import DataStore
from listscanner.store.live_query import LiveQuery

ITEMS = Item.__tablename__


def _select_for_list(list_id: int):
    async def query(session: AsyncSession) -> List[Item]:
        result = await session.execute(
            select(Item)
            .where(Item.list_id == list_id)
            .order_by(Item.position.asc(), Item.id.asc())
        )
        return list(result.scalars().all())

    return query


class ItemDao:
    def __init__(self, store: DataStore):
        self._store = store

    async def insert(self, item: Item) -> int:
        """Insert or replace (by id) one item; returns its id."""
        ids = await self.insert_all([item])
        return ids[0]

    async def insert_all(self, items: Iterable[Item]) -> List[int]:
        """Insert or replace (by id) several items; ids come back in input order."""
        items = list(items)
        async with self._store.transaction() as session:
            merged = [await session.merge(item) for item in items]
            await session.flush()
            self._store.mark_changed(ITEMS)
            for item, stored in zip(items, merged):
                item.id = stored.id
            return [stored.id for stored in merged]

    def observe_for_list(self, list_id: int) -> LiveQuery[List[Item]]:
        return self._store.observe(_select_for_list(list_id), [ITEMS])

    async def get_for_list(self, list_id: int) -> List[Item]:
        return await self._store.read(_select_for_list(list_id))

    async def get_by_id(self, item_id: int) -> Optional[Item]:
        async def query(session: AsyncSession) -> Optional[Item]:
            return await session.get(Item, item_id)

        return await self._store.read(query)

    async def update(self, item: Item) -> bool:
        async with self._store.transaction() as session:
            result = await session.execute(
                update(Item)
                .where(Item.id == item.id)
                .values(
                    list_id=item.list_id,
                    text=item.text,
                    is_checked=item.is_checked,
                    position=item.position,
                )
            )
            self._store.mark_changed(ITEMS)
            return result.rowcount > 0

    async def delete(self, item_id: int) -> bool:
        async with self._store.transaction() as session:
            result = await session.execute(delete(Item).where(Item.id == item_id))
            self._store.mark_changed(ITEMS)
            return result.rowcount > 0

    async def update_is_checked(self, item_id: int, is_checked: bool) -> bool:
        return await self._update_columns(item_id, is_checked=is_checked)

    async def update_text(self, item_id: int, text: str) -> bool:
        return await self._update_columns(item_id, text=text)

    async def update_position(self, item_id: int, position: int) -> bool:
        return await self._update_columns(item_id, position=position)

    async def get_max_position_for_list(self, list_id: int) -> int:
        """Highest position in the list, or -1 when it has no items."""

        async def query(session: AsyncSession) -> int:
            result = await session.execute(
                select(func.coalesce(func.max(Item.position), -1)).where(Item.list_id == list_id)
            )
            return int(result.scalar_one())

        return await self._store.read(query)

    async def _update_columns(self, item_id: int, **values) -> bool:
        async with self._store.transaction() as session:
            result = await session.execute(update(Item).where(Item.id == item_id).values(**values))
            self._store.mark_changed(ITEMS)
            return result.rowcount > 0
