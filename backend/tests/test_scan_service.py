"""
List Scanner Backend — Scan Workflow Tests
===========================================

OCR is mocked; photos, lists and items live in a real SQLite store.

What we test:
    ✅ PENDING → PROCESSING → COMPLETED with a linked list
    ✅ OCR errors, blank text and unparseable text → FAILED, no list
    ✅ PROCESSING photos are rejected, missing photos are NotFound
    ✅ FAILED photos can be scanned again
    ✅ Two concurrent scans of one photo: one list, one rejection
    ✅ A failed COMPLETED update or a cancelled scan leaves the photo FAILED
    ✅ No consent → ConsentRequiredError; successful scans are counted
    ✅ Crop regions go to recognize_image; undecodable images → FAILED
"""

import asyncio
import io

import pytest
from PIL import Image

from listscanner.exceptions import (
    CircuitBreakerOpenError,
    ConsentRequiredError,
    DatabaseError,
    ImageCropError,
    NoItemsDetectedError,
    NotFoundError,
    OcrServiceError,
    ValidationError,
)
from listscanner.models.photo import OcrStatus
from listscanner.result import Failure, Success
from listscanner.services.image_crop_service import CropRect


async def status_of(photo_dao, photo_id):
    return (await photo_dao.get_by_id(photo_id)).ocr_status


class TestScanPhoto:
    @pytest.mark.asyncio
    async def test_success(self, scan_service, mock_ocr_engine, photo_dao, list_dao, item_dao, stored_photo):
        result = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(result, Success)
        mock_ocr_engine.recognize_text.assert_awaited_once_with(stored_photo.file_path)
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.COMPLETED

        shopping_list = await list_dao.get_by_photo_id(stored_photo.id)
        assert shopping_list.id == result.data
        assert [i.text for i in await item_dao.get_for_list(result.data)] == ["milk", "eggs", "bread"]

    @pytest.mark.asyncio
    async def test_status_is_processing_during_ocr(self, scan_service, mock_ocr_engine, photo_dao, stored_photo):
        seen = []

        async def recognize(path):
            seen.append(await status_of(photo_dao, stored_photo.id))
            return "milk"

        mock_ocr_engine.recognize_text.side_effect = recognize

        await scan_service.scan_photo(stored_photo.id)

        assert seen == [OcrStatus.PROCESSING]

    @pytest.mark.asyncio
    async def test_ocr_service_error(self, scan_service, mock_ocr_engine, photo_dao, list_dao, stored_photo):
        error = OcrServiceError(retry_after=60)
        mock_ocr_engine.recognize_text.side_effect = error

        result = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(result, Failure)
        assert result.error is error
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.FAILED
        assert await list_dao.get_all() == []

    @pytest.mark.asyncio
    async def test_circuit_open(self, scan_service, mock_ocr_engine, photo_dao, stored_photo):
        mock_ocr_engine.recognize_text.side_effect = CircuitBreakerOpenError(recovery_time=60)

        result = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(result.error, CircuitBreakerOpenError)
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.FAILED

    @pytest.mark.asyncio
    async def test_unexpected_engine_exception_is_wrapped(self, scan_service, mock_ocr_engine, photo_dao, stored_photo):
        boom = ConnectionError("reset by peer")
        mock_ocr_engine.recognize_text.side_effect = boom

        result = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(result.error, OcrServiceError)
        assert result.cause is boom
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.FAILED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "  \n \n"])
    async def test_blank_text(self, scan_service, mock_ocr_engine, photo_dao, list_dao, stored_photo, text):
        mock_ocr_engine.recognize_text.return_value = text

        result = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(result.error, NoItemsDetectedError)
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.FAILED
        assert await list_dao.get_all() == []

    @pytest.mark.asyncio
    async def test_text_without_items(self, scan_service, mock_ocr_engine, photo_dao, list_dao, stored_photo):
        mock_ocr_engine.recognize_text.return_value = "a\n-\n3."

        result = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(result.error, NoItemsDetectedError)
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.FAILED
        assert await list_dao.get_all() == []

    @pytest.mark.asyncio
    async def test_missing_photo(self, scan_service, mock_ocr_engine):
        result = await scan_service.scan_photo(404)

        assert isinstance(result.error, NotFoundError)
        mock_ocr_engine.recognize_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejects_photo_already_processing(self, scan_service, mock_ocr_engine, photo_dao, stored_photo):
        await photo_dao.update_ocr_status(stored_photo.id, OcrStatus.PROCESSING)

        result = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(result.error, ValidationError)
        mock_ocr_engine.recognize_text.assert_not_awaited()
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_rescan_after_failure(self, scan_service, mock_ocr_engine, photo_dao, stored_photo):
        mock_ocr_engine.recognize_text.side_effect = [OcrServiceError(), "milk\neggs"]

        first = await scan_service.scan_photo(stored_photo.id)
        second = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(first, Failure)
        assert isinstance(second, Success)
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_concurrent_scans_of_one_photo_create_one_list(
        self, scan_service, mock_ocr_engine, photo_dao, list_dao, stored_photo
    ):
        async def slow_recognize(path):
            await asyncio.sleep(0.05)
            return "milk\neggs"

        mock_ocr_engine.recognize_text.side_effect = slow_recognize

        results = await asyncio.gather(
            scan_service.scan_photo(stored_photo.id),
            scan_service.scan_photo(stored_photo.id),
        )

        successes = [r for r in results if isinstance(r, Success)]
        failures = [r for r in results if isinstance(r, Failure)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0].error, ValidationError)
        assert mock_ocr_engine.recognize_text.await_count == 1
        lists = await list_dao.get_all()
        assert [shopping_list.id for shopping_list in lists] == [successes[0].data]
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_failed_completed_update_marks_failed(self, scan_service, photo_dao, stored_photo, monkeypatch):
        original = photo_dao.update_ocr_status

        async def update_ocr_status(photo_id, status):
            if status == OcrStatus.COMPLETED:
                raise RuntimeError("disk I/O error")
            return await original(photo_id, status)

        monkeypatch.setattr(photo_dao, "update_ocr_status", update_ocr_status)

        result = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(result.error, DatabaseError)
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.FAILED

    @pytest.mark.asyncio
    async def test_cancelled_scan_marks_failed(self, scan_service, mock_ocr_engine, photo_dao, list_dao, stored_photo):
        started = asyncio.Event()

        async def hanging_recognize(path):
            started.set()
            await asyncio.sleep(10)
            return "milk"

        mock_ocr_engine.recognize_text.side_effect = hanging_recognize

        task = asyncio.create_task(scan_service.scan_photo(stored_photo.id))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.FAILED
        assert await list_dao.get_all() == []


class TestScanGates:
    @pytest.mark.asyncio
    async def test_requires_consent(self, scan_service, consent_repository, mock_ocr_engine, photo_dao, stored_photo):
        await consent_repository.set_user_consent(False)

        result = await scan_service.scan_photo(stored_photo.id)

        assert isinstance(result.error, ConsentRequiredError)
        mock_ocr_engine.recognize_text.assert_not_awaited()
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.PENDING

    @pytest.mark.asyncio
    async def test_successful_scan_counts_usage(self, scan_service, usage_repository, stored_photo):
        await scan_service.scan_photo(stored_photo.id)

        assert await usage_repository.get_weekly_usage() == Success(1)

    @pytest.mark.asyncio
    async def test_failed_scan_does_not_count_usage(self, scan_service, usage_repository, mock_ocr_engine, stored_photo):
        mock_ocr_engine.recognize_text.return_value = ""

        await scan_service.scan_photo(stored_photo.id)

        assert await usage_repository.get_weekly_usage() == Success(0)


class TestScanCrop:
    @pytest.mark.asyncio
    async def test_crop_sends_region_to_engine(self, scan_service, mock_ocr_engine, photo_dao, png_photo):
        result = await scan_service.scan_photo(png_photo.id, crop=CropRect(0.5, 0.0, 1.0, 1.0))

        assert isinstance(result, Success)
        mock_ocr_engine.recognize_text.assert_not_awaited()
        image, mime_type = mock_ocr_engine.recognize_image.await_args.args
        assert mime_type == "image/jpeg"
        with Image.open(io.BytesIO(image)) as cropped:
            assert cropped.size == (100, 100)
            assert max(cropped.getpixel((50, 50))) < 16
        assert await status_of(photo_dao, png_photo.id) == OcrStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_crop_failure_marks_failed(self, scan_service, mock_ocr_engine, photo_dao, list_dao, stored_photo):
        with open(stored_photo.file_path, "wb") as f:
            f.write(b"not an image at all")

        result = await scan_service.scan_photo(stored_photo.id, crop=CropRect(0.1, 0.1, 0.9, 0.9))

        assert isinstance(result.error, ImageCropError)
        mock_ocr_engine.recognize_image.assert_not_awaited()
        assert await status_of(photo_dao, stored_photo.id) == OcrStatus.FAILED
        assert await list_dao.get_all() == []
