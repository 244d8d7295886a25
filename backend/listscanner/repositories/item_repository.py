"""
List Scanner Backend — Item Repository
=======================================

Result-returning façade over ItemDao, plus the item edits made by hand:

    add_item(list_id, text)       normalize, append at max_position + 1
    update_item_text(id, text)    normalize, reject text that is too short
    edit_item(id, text, checked)  both changes in one transaction
    toggle_item_checked(id)       flip is_checked
    reorder_items(list_id, ids)   position = index in `ids`, one transaction

Positions are not renumbered when an item is deleted; the gap closes on the
next reorder.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from listscanner.exceptions import ValidationError
from listscanner.models.item import MIN_ITEM_LENGTH, Item
from listscanner.repositories.base import BaseRepository
from listscanner.result import Failure, Result
from listscanner.services.text_parser import normalize_item_text
from listscanner.store.data_store import DataStore
from listscanner.store.item_dao import ItemDao
from listscanner.store.live_query import LiveQuery


def _text_too_short() -> Failure:
    return Failure.from_error(
        ValidationError(
            message=f"Item text must be at least {MIN_ITEM_LENGTH} characters.",
            field="text",
        )
    )


class ItemRepository(BaseRepository):
    def __init__(self, store: DataStore, item_dao: ItemDao):
        self._store = store
        self._dao = item_dao

    def observe_items_for_list(self, list_id: int) -> LiveQuery[List[Item]]:
        """Items of one list in position order, refreshed on item changes."""
        return self._dao.observe_for_list(list_id)

    async def get_items_for_list(self, list_id: int) -> Result[List[Item]]:
        return await self._guard(
            "load items",
            lambda: self._dao.get_for_list(list_id),
            list_id=list_id,
        )

    async def get_item_by_id(self, item_id: int) -> Result[Optional[Item]]:
        return await self._guard(
            "load the item",
            lambda: self._dao.get_by_id(item_id),
            item_id=item_id,
        )

    async def insert_item(self, item: Item) -> Result[int]:
        return await self._guard("save the item", lambda: self._dao.insert(item))

    async def insert_items(self, items: Iterable[Item]) -> Result[List[int]]:
        items = list(items)
        return await self._guard(
            "save items",
            lambda: self._dao.insert_all(items),
            count=len(items),
        )

    async def update_item(self, item: Item) -> Result[bool]:
        return await self._guard(
            "update the item",
            lambda: self._dao.update(item),
            item_id=item.id,
        )

    async def delete_item(self, item_id: int) -> Result[bool]:
        return await self._guard(
            "delete the item",
            lambda: self._dao.delete(item_id),
            item_id=item_id,
        )

    async def update_item_checked(self, item_id: int, is_checked: bool) -> Result[bool]:
        return await self._guard(
            "update the item",
            lambda: self._dao.update_is_checked(item_id, is_checked),
            item_id=item_id,
        )

    async def toggle_item_checked(self, item_id: int) -> Result[Optional[bool]]:
        """Flip is_checked; Success(new_state), or Success(None) for an unknown id."""

        async def operation() -> Optional[bool]:
            async with self._store.transaction():
                item = await self._dao.get_by_id(item_id)
                if item is None:
                    return None
                new_state = not item.is_checked
                await self._dao.update_is_checked(item_id, new_state)
                return new_state

        return await self._guard("update the item", operation, item_id=item_id)

    async def update_item_text(self, item_id: int, text: str) -> Result[bool]:
        normalized = normalize_item_text(text)
        if normalized is None:
            return _text_too_short()
        return await self._guard(
            "update the item",
            lambda: self._dao.update_text(item_id, normalized),
            item_id=item_id,
        )

    async def edit_item(
        self,
        item_id: int,
        text: Optional[str] = None,
        is_checked: Optional[bool] = None,
    ) -> Result[bool]:
        """
        Change text and/or checked state together; either both apply or neither.

        Success(False) for an unknown id.
        """
        normalized = None
        if text is not None:
            normalized = normalize_item_text(text)
            if normalized is None:
                return _text_too_short()

        async def operation() -> bool:
            async with self._store.transaction():
                if await self._dao.get_by_id(item_id) is None:
                    return False
                if normalized is not None:
                    await self._dao.update_text(item_id, normalized)
                if is_checked is not None:
                    await self._dao.update_is_checked(item_id, is_checked)
            return True

        return await self._guard("update the item", operation, item_id=item_id)

    async def get_max_position_for_list(self, list_id: int) -> Result[int]:
        """Highest position in the list; -1 when the list is empty."""
        return await self._guard(
            "load items",
            lambda: self._dao.get_max_position_for_list(list_id),
            list_id=list_id,
        )

    async def update_item_positions(self, positions: Dict[int, int]) -> Result[bool]:
        """
        Apply {item_id: position} in a single transaction.

        Success(True) only if every id existed; any store failure leaves all
        positions unchanged.
        """

        async def operation() -> bool:
            async with self._store.transaction():
                updated = [
                    await self._dao.update_position(item_id, position)
                    for item_id, position in positions.items()
                ]
            return all(updated)

        return await self._guard("reorder items", operation, count=len(positions))

    async def add_item(self, list_id: int, text: str) -> Result[int]:
        """Append a user-entered item to the end of a list; Success(item_id)."""
        normalized = normalize_item_text(text)
        if normalized is None:
            return _text_too_short()

        async def operation() -> int:
            async with self._store.transaction():
                position = await self._dao.get_max_position_for_list(list_id) + 1
                return await self._dao.insert(
                    Item(list_id=list_id, text=normalized, position=position, is_checked=False)
                )

        return await self._guard("add the item", operation, list_id=list_id)

    async def reorder_items(self, list_id: int, item_ids: Sequence[int]) -> Result[bool]:
        """
        Give each item of `list_id` the position of its id in `item_ids`.

        `item_ids` must name exactly the list's items.
        """
        if len(set(item_ids)) != len(item_ids):
            return Failure.from_error(
                ValidationError(message="Item order contains duplicates.", field="item_ids")
            )

        async def operation() -> bool:
            async with self._store.transaction():
                current = {item.id for item in await self._dao.get_for_list(list_id)}
                if current != set(item_ids):
                    raise ValidationError(
                        message="Item order must list every item of the list exactly once.",
                        field="item_ids",
                        context={"list_id": list_id},
                    )
                for position, item_id in enumerate(item_ids):
                    await self._dao.update_position(item_id, position)
            return True

        return await self._guard("reorder items", operation, list_id=list_id)
