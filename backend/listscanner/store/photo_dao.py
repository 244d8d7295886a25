"""
List Scanner Backend — Photo Data Access
=========================================

CRUD for the `photos` table on top of the DataStore. Every write runs in
`store.transaction()` (joining an enclosing one if present) and reports the
tables it touched so live queries refresh.
"""

from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from listscanner.models.photo import OcrStatus, Photo
from listscanner.models.shopping_list import ShoppingList
from listscanner.store.data_store import DataStore
from listscanner.store.live_query import LiveQuery

PHOTOS = Photo.__tablename__
LISTS = ShoppingList.__tablename__


async def _select_all(session: AsyncSession) -> List[Photo]:
    result = await session.execute(
        select(Photo).order_by(Photo.timestamp.desc(), Photo.id.desc())
    )
    return list(result.scalars().all())


class PhotoDao:
    def __init__(self, store: DataStore):
        self._store = store

    async def insert(self, photo: Photo) -> int:
        """Insert or replace (by id) a photo; returns its id."""
        async with self._store.transaction() as session:
            merged = await session.merge(photo)
            await session.flush()
            self._store.mark_changed(PHOTOS)
            photo.id = merged.id
            return merged.id

    def observe_all(self) -> LiveQuery[List[Photo]]:
        return self._store.observe(_select_all, [PHOTOS])

    async def get_all(self) -> List[Photo]:
        return await self._store.read(_select_all)

    async def get_by_id(self, photo_id: int) -> Optional[Photo]:
        async def query(session: AsyncSession) -> Optional[Photo]:
            return await session.get(Photo, photo_id)

        return await self._store.read(query)

    async def delete(self, photo_id: int) -> bool:
        """Delete a photo; lists pointing at it get photo_id = NULL."""
        async with self._store.transaction() as session:
            result = await session.execute(delete(Photo).where(Photo.id == photo_id))
            self._store.mark_changed(PHOTOS, LISTS)
            return result.rowcount > 0

    async def update_ocr_status(self, photo_id: int, status: OcrStatus) -> bool:
        async with self._store.transaction() as session:
            result = await session.execute(
                update(Photo).where(Photo.id == photo_id).values(ocr_status=status)
            )
            self._store.mark_changed(PHOTOS)
            return result.rowcount > 0

    async def claim_for_scan(self, photo_id: int) -> bool:
        """
        Move a photo into PROCESSING unless it is already there.

        A single conditional UPDATE, so of two concurrent scans of the same
        photo exactly one gets True.
        """
        async with self._store.transaction() as session:
            result = await session.execute(
                update(Photo)
                .where(Photo.id == photo_id, Photo.ocr_status != OcrStatus.PROCESSING)
                .values(ocr_status=OcrStatus.PROCESSING)
            )
            if result.rowcount > 0:
                self._store.mark_changed(PHOTOS)
            return result.rowcount > 0
