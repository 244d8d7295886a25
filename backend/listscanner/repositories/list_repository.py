"""
List Scanner Backend — Shopping List Repository
================================================

Result-returning façade over ListDao. A missing id is `Success(None)` for
lookups and `Success(False)` for writes; only store failures are Failures.
"""

from typing import List, Optional

from listscanner.exceptions import ValidationError
from listscanner.models.list_with_counts import ListWithCounts
from listscanner.models.photo import OcrStatus
from listscanner.models.shopping_list import ShoppingList
from listscanner.repositories.base import BaseRepository
from listscanner.result import Failure, Result
from listscanner.store.data_store import DataStore
from listscanner.store.list_dao import ListDao
from listscanner.store.live_query import LiveQuery
from listscanner.store.photo_dao import PhotoDao

MAX_LIST_NAME_LENGTH = 100


class ListRepository(BaseRepository):
    def __init__(self, store: DataStore, list_dao: ListDao, photo_dao: PhotoDao):
        self._store = store
        self._dao = list_dao
        self._photo_dao = photo_dao

    def observe_all_lists(self) -> LiveQuery[List[ShoppingList]]:
        return self._dao.observe_all()

    def observe_all_lists_with_counts(self) -> LiveQuery[List[ListWithCounts]]:
        """Lists overview: refreshed on list, item and photo changes."""
        return self._dao.observe_all_with_counts()

    async def get_all_lists_with_counts(self) -> Result[List[ListWithCounts]]:
        return await self._guard("load lists", self._dao.get_all_with_counts)

    async def get_list_by_id(self, list_id: int) -> Result[Optional[ShoppingList]]:
        return await self._guard(
            "load the list",
            lambda: self._dao.get_by_id(list_id),
            list_id=list_id,
        )

    async def get_list_by_photo_id(self, photo_id: int) -> Result[Optional[ShoppingList]]:
        return await self._guard(
            "load the list",
            lambda: self._dao.get_by_photo_id(photo_id),
            photo_id=photo_id,
        )

    async def insert_list(self, shopping_list: ShoppingList) -> Result[int]:
        return await self._guard("save the list", lambda: self._dao.insert(shopping_list))

    async def update_list(self, shopping_list: ShoppingList) -> Result[bool]:
        return await self._guard(
            "update the list",
            lambda: self._dao.update(shopping_list),
            list_id=shopping_list.id,
        )

    async def rename_list(self, list_id: int, name: str) -> Result[bool]:
        name = name.strip()
        if not name:
            return Failure.from_error(
                ValidationError(message="List name cannot be empty.", field="name")
            )
        return await self._guard(
            "rename the list",
            lambda: self._dao.rename(list_id, name[:MAX_LIST_NAME_LENGTH]),
            list_id=list_id,
        )

    async def delete_list(self, list_id: int) -> Result[bool]:
        """Delete a list and (by cascade) all of its items."""
        return await self._guard(
            "delete the list",
            lambda: self._dao.delete(list_id),
            list_id=list_id,
        )

    async def delete_list_and_reset_photo(self, list_id: int) -> Result[bool]:
        """
        Delete a list and put its source photo back to PENDING, atomically,
        so the photo can be scanned again.
        """

        async def operation() -> bool:
            async with self._store.transaction():
                shopping_list = await self._dao.get_by_id(list_id)
                if shopping_list is None:
                    return False
                deleted = await self._dao.delete(list_id)
                if shopping_list.photo_id is not None:
                    await self._photo_dao.update_ocr_status(
                        shopping_list.photo_id, OcrStatus.PENDING
                    )
                return deleted

        return await self._guard("delete the list", operation, list_id=list_id)
