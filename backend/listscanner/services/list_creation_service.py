"""
List Scanner Backend — List Creation Service (Orchestrator)
============================================================

What:  Turns recognized text into a persisted shopping list with its items.
How:   Composes the text parser, the DataStore transaction and the list /
       item DAOs.
Who:   Called by ScanService after OCR and by POST /api/lists/from-text.

Orchestration Flow:
    ┌──────────┐    ┌──────────────┐    ┌──────────────────────────────┐
    │  Parse   │───▶│ Any items?   │───▶│ ONE transaction:             │
    │  text    │    │  no → fail   │    │   insert list → id           │
    └──────────┘    │  (no writes) │    │   rewrite list_id on items   │
                    └──────────────┘    │   insert items               │
                                        └──────────────────────────────┘

    - Zero candidates: Failure(NoItemsDetectedError). The store is never
      touched.
    - Any exception inside the transaction: everything written in it is
      rolled back, and the caller gets Failure(CreationFailedError) with the
      original exception chained as its cause.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from listscanner.config import settings
from listscanner.exceptions import CreationFailedError, NoItemsDetectedError
from listscanner.models.shopping_list import ShoppingList
from listscanner.result import Failure, Result, Success
from listscanner.services.text_parser import parse_text_to_items
from listscanner.store.data_store import DataStore
from listscanner.store.item_dao import ItemDao
from listscanner.store.list_dao import ListDao

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ListCreationService:
    """
    Creates a list and its items from OCR text, atomically.

    Args:
        store: DataStore providing the transaction.
        list_dao / item_dao: DAOs bound to the same store.
        clock: Returns the current local time; the list name is derived
               from it. Injected so tests can pin the name.
        name_format: strftime pattern for the list name.
    """

    def __init__(
        self,
        store: DataStore,
        list_dao: ListDao,
        item_dao: ItemDao,
        clock: Callable[[], datetime] = _local_now,
        name_format: Optional[str] = None,
    ):
        self._store = store
        self._list_dao = list_dao
        self._item_dao = item_dao
        self._clock = clock
        self._name_format = name_format or settings.list_name_format

    async def create_list_from_text(self, photo_id: Optional[int], text: str) -> Result[int]:
        """
        Parse `text` and persist a new list linked to `photo_id`.

        Returns:
            Success(list_id) on commit; Failure(NoItemsDetectedError) when
            nothing parsed; Failure(CreationFailedError) when the store
            transaction failed (nothing persisted).
        """
        candidates = parse_text_to_items(text)
        if not candidates:
            logger.info("No items detected in text for photo %s", photo_id)
            error = NoItemsDetectedError(context={"photo_id": photo_id})
            return Failure.from_error(error)

        now = self._clock()
        shopping_list = ShoppingList(
            photo_id=photo_id,
            name=now.strftime(self._name_format),
            created_date=now.astimezone(timezone.utc),
        )

        try:
            async with self._store.transaction():
                list_id = await self._list_dao.insert(shopping_list)
                await self._item_dao.insert_all(
                    candidate.to_item(list_id) for candidate in candidates
                )
        except Exception as e:
            logger.error(
                "List creation failed for photo %s (%d candidates): %s",
                photo_id,
                len(candidates),
                type(e).__name__,
                exc_info=True,
            )
            error = CreationFailedError(
                context={"photo_id": photo_id, "error_type": type(e).__name__}
            )
            error.__cause__ = e
            return Failure.from_error(error)

        logger.info("Created list %d with %d items (photo=%s)", list_id, len(candidates), photo_id)
        return Success(list_id)
