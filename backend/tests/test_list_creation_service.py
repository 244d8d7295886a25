"""
List Scanner Backend — List Creation Service Tests
===================================================

What we test:
    ✅ Text → one list + ordered items, committed together
    ✅ Name derived from the (pinned) clock, photo link kept
    ✅ Nothing parsed → NoItemsDetectedError, store untouched
    ✅ Failure mid-transaction → CreationFailedError, nothing persisted,
       original exception chained as the cause
"""

from unittest.mock import patch

import pytest

from conftest import FIXED_NOW
from listscanner.exceptions import CreationFailedError, NoItemsDetectedError
from listscanner.result import Failure, Success


class TestCreateListFromText:
    @pytest.mark.asyncio
    async def test_creates_list_with_items(self, list_creation_service, list_dao, item_dao, stored_photo):
        result = await list_creation_service.create_list_from_text(stored_photo.id, "milk\neggs\nbread")

        assert isinstance(result, Success)
        shopping_list = await list_dao.get_by_id(result.data)
        assert shopping_list.photo_id == stored_photo.id
        assert shopping_list.name == FIXED_NOW.strftime("%Y-%m-%d %H:%M") == "2024-03-15 09:30"

        items = await item_dao.get_for_list(result.data)
        assert [(i.text, i.position, i.is_checked) for i in items] == [
            ("milk", 0, False),
            ("eggs", 1, False),
            ("bread", 2, False),
        ]

    @pytest.mark.asyncio
    async def test_without_photo(self, list_creation_service, list_dao):
        result = await list_creation_service.create_list_from_text(None, "- apples\n- pears")

        assert isinstance(result, Success)
        assert (await list_dao.get_by_id(result.data)).photo_id is None

    @pytest.mark.asyncio
    async def test_custom_name_format(self, store, list_dao, item_dao):
        from listscanner.services.list_creation_service import ListCreationService

        service = ListCreationService(
            store, list_dao, item_dao, clock=lambda: FIXED_NOW, name_format="Shopping %d/%m"
        )
        result = await service.create_list_from_text(None, "milk")

        assert (await list_dao.get_by_id(result.data)).name == "Shopping 15/03"

    @pytest.mark.asyncio
    async def test_single_commit_notification(self, list_creation_service, list_dao):
        live = list_dao.observe_all_with_counts()
        await live.next(timeout=1)

        await list_creation_service.create_list_from_text(None, "milk\neggs\nbread")

        assert live.pending() == 1
        [row] = await live.next(timeout=1)
        assert row.item_count == 3
        live.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   \n\t\n", "x\n-\n2."])
    async def test_no_items_detected(self, list_creation_service, list_dao, text):
        live = list_dao.observe_all()
        await live.next(timeout=1)

        result = await list_creation_service.create_list_from_text(None, text)

        assert isinstance(result, Failure)
        assert isinstance(result.error, NoItemsDetectedError)
        assert result.message == result.error.message
        assert await list_dao.get_all() == []
        assert live.pending() == 0
        live.close()

    @pytest.mark.asyncio
    async def test_item_insert_failure_rolls_back_list(self, list_creation_service, list_dao, item_dao):
        boom = RuntimeError("disk I/O error")
        with patch.object(item_dao, "insert_all", side_effect=boom):
            result = await list_creation_service.create_list_from_text(None, "milk\neggs")

        assert isinstance(result, Failure)
        assert isinstance(result.error, CreationFailedError)
        assert result.cause is boom
        assert await list_dao.get_all() == []

    @pytest.mark.asyncio
    async def test_list_insert_failure(self, list_creation_service, list_dao):
        with patch.object(list_dao, "insert", side_effect=OSError("database is locked")):
            result = await list_creation_service.create_list_from_text(None, "milk")

        assert isinstance(result, Failure)
        assert isinstance(result.error, CreationFailedError)
        assert isinstance(result.cause, OSError)

    @pytest.mark.asyncio
    async def test_dangling_photo_id_fails_atomically(self, list_creation_service, list_dao, item_dao):
        result = await list_creation_service.create_list_from_text(9999, "milk\neggs")

        assert isinstance(result, Failure)
        assert isinstance(result.error, CreationFailedError)
        assert await list_dao.get_all() == []
