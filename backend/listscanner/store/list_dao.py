"""
List Scanner Backend — ShoppingList Data Access
================================================

CRUD for the `lists` table plus the lists-overview aggregate:

    SELECT lists.*,
           COUNT(items.id)                                  AS item_count,
           COALESCE(SUM(CASE WHEN items.is_checked ...), 0) AS checked_count,
           photos.file_path                                 AS photo_file_path
    FROM lists
    LEFT JOIN items  ON items.list_id = lists.id
    LEFT JOIN photos ON photos.id = lists.photo_id
    GROUP BY lists.id, photos.file_path
    ORDER BY lists.created_date DESC
"""

from typing import List, Optional

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from listscanner.models.item import Item
from listscanner.models.list_with_counts import ListWithCounts
from listscanner.models.photo import Photo
from listscanner.models.shopping_list import ShoppingList
from listscanner.store.data_store import DataStore
from listscanner.store.live_query import LiveQuery

LISTS = ShoppingList.__tablename__
ITEMS = Item.__tablename__
PHOTOS = Photo.__tablename__

_NEWEST_FIRST = (ShoppingList.created_date.desc(), ShoppingList.id.desc())


async def _select_all(session: AsyncSession) -> List[ShoppingList]:
    result = await session.execute(select(ShoppingList).order_by(*_NEWEST_FIRST))
    return list(result.scalars().all())


async def _select_all_with_counts(session: AsyncSession) -> List[ListWithCounts]:
    item_count = func.count(Item.id).label("item_count")
    checked_count = func.coalesce(
        func.sum(case((Item.is_checked.is_(True), 1), else_=0)), 0
    ).label("checked_count")

    stmt = (
        select(ShoppingList, item_count, checked_count, Photo.file_path)
        .outerjoin(Item, Item.list_id == ShoppingList.id)
        .outerjoin(Photo, Photo.id == ShoppingList.photo_id)
        .group_by(ShoppingList.id, Photo.file_path)
        .order_by(*_NEWEST_FIRST)
    )
    result = await session.execute(stmt)
    return [
        ListWithCounts(
            shopping_list=row[0],
            item_count=int(row[1]),
            checked_count=int(row[2]),
            photo_file_path=row[3],
        )
        for row in result.all()
    ]


class ListDao:
    def __init__(self, store: DataStore):
        self._store = store

    async def insert(self, shopping_list: ShoppingList) -> int:
        """Insert or replace (by id) a list; returns its id."""
        async with self._store.transaction() as session:
            merged = await session.merge(shopping_list)
            await session.flush()
            self._store.mark_changed(LISTS)
            shopping_list.id = merged.id
            return merged.id

    def observe_all(self) -> LiveQuery[List[ShoppingList]]:
        return self._store.observe(_select_all, [LISTS])

    def observe_all_with_counts(self) -> LiveQuery[List[ListWithCounts]]:
        return self._store.observe(_select_all_with_counts, [LISTS, ITEMS, PHOTOS])

    async def get_all(self) -> List[ShoppingList]:
        return await self._store.read(_select_all)

    async def get_all_with_counts(self) -> List[ListWithCounts]:
        return await self._store.read(_select_all_with_counts)

    async def get_by_id(self, list_id: int) -> Optional[ShoppingList]:
        async def query(session: AsyncSession) -> Optional[ShoppingList]:
            return await session.get(ShoppingList, list_id)

        return await self._store.read(query)

    async def get_by_photo_id(self, photo_id: int) -> Optional[ShoppingList]:
        async def query(session: AsyncSession) -> Optional[ShoppingList]:
            result = await session.execute(
                select(ShoppingList)
                .where(ShoppingList.photo_id == photo_id)
                .order_by(*_NEWEST_FIRST)
                .limit(1)
            )
            return result.scalar_one_or_none()

        return await self._store.read(query)

    async def update(self, shopping_list: ShoppingList) -> bool:
        """Overwrite an existing list's columns; False when the id is unknown."""
        async with self._store.transaction() as session:
            result = await session.execute(
                update(ShoppingList)
                .where(ShoppingList.id == shopping_list.id)
                .values(
                    photo_id=shopping_list.photo_id,
                    name=shopping_list.name,
                    created_date=shopping_list.created_date,
                )
            )
            self._store.mark_changed(LISTS)
            return result.rowcount > 0

    async def rename(self, list_id: int, name: str) -> bool:
        async with self._store.transaction() as session:
            result = await session.execute(
                update(ShoppingList).where(ShoppingList.id == list_id).values(name=name)
            )
            self._store.mark_changed(LISTS)
            return result.rowcount > 0

    async def delete(self, list_id: int) -> bool:
        """Delete a list; its items go with it (ON DELETE CASCADE)."""
        async with self._store.transaction() as session:
            result = await session.execute(delete(ShoppingList).where(ShoppingList.id == list_id))
            self._store.mark_changed(LISTS, ITEMS)
            return result.rowcount > 0
