"""
List Scanner Backend — Photo Scan Workflow
===========================================

What:  Runs OCR on a stored photo (or a selected region of it) and turns the
       result into a list, keeping the photo's ocr_status in step.
Who:   Called by POST /api/photos/{id}/scan.

Flow:
    1. Privacy consent for cloud OCR must have been given
    2. Claim the photo: PENDING/FAILED/COMPLETED → PROCESSING in a single
       conditional update; a photo already in PROCESSING is rejected
    3. Crop the selected region, if any
    4. OCR → parse → create the list
    5. PROCESSING → COMPLETED, and count the scan towards weekly usage

Status lifecycle:
    PENDING ──scan──▶ PROCESSING ──list created──▶ COMPLETED
                          │
                          └──crop / OCR error, blank text, no items,
                             creation failure, cancellation──▶ FAILED

    FAILED and COMPLETED photos may be scanned again. Every way out of
    PROCESSING other than success marks the photo FAILED.
"""

import logging
from typing import Optional

from listscanner.exceptions import (
    ConsentRequiredError,
    ListScannerError,
    NoItemsDetectedError,
    NotFoundError,
    OcrServiceError,
    ValidationError,
)
from listscanner.models.photo import OcrStatus
from listscanner.repositories.consent_repository import PrivacyConsentRepository
from listscanner.repositories.photo_repository import PhotoRepository
from listscanner.repositories.usage_repository import UsageTrackingRepository
from listscanner.result import Failure, Result, Success
from listscanner.services.image_crop_service import CROPPED_MIME_TYPE, CropRect, ImageCropService
from listscanner.services.list_creation_service import ListCreationService
from listscanner.services.ocr_base import OcrEngine

logger = logging.getLogger(__name__)


class ScanService:
    def __init__(
        self,
        photo_repository: PhotoRepository,
        list_creation_service: ListCreationService,
        ocr_engine: OcrEngine,
        consent_repository: PrivacyConsentRepository,
        usage_repository: UsageTrackingRepository,
        image_crop_service: Optional[ImageCropService] = None,
    ):
        self._photos = photo_repository
        self._lists = list_creation_service
        self._ocr = ocr_engine
        self._consent = consent_repository
        self._usage = usage_repository
        self._cropper = image_crop_service or ImageCropService()

    async def scan_photo(self, photo_id: int, crop: Optional[CropRect] = None) -> Result[int]:
        """
        OCR a photo, or only the `crop` region of it, and create a list from
        the recognized text.

        Returns:
            Success(list_id), or a Failure carrying ConsentRequiredError,
            NotFoundError, ValidationError (scan already running),
            ImageCropError, an OCR error, NoItemsDetectedError or
            CreationFailedError.
        """
        consent = await self._consent.has_user_consented()
        if isinstance(consent, Failure):
            return consent
        if not consent.data:
            logger.info("Scan of photo %d refused: cloud OCR consent not given", photo_id)
            return Failure.from_error(ConsentRequiredError(context={"photo_id": photo_id}))

        lookup = await self._photos.get_photo_by_id(photo_id)
        if isinstance(lookup, Failure):
            return lookup
        photo = lookup.data
        if photo is None:
            return Failure.from_error(NotFoundError(resource="photo", resource_id=str(photo_id)))

        claimed = await self._photos.claim_for_scan(photo_id)
        if isinstance(claimed, Failure):
            return claimed
        if not claimed.data:
            return Failure.from_error(
                ValidationError(
                    message="This photo is already being scanned.",
                    context={"photo_id": photo_id},
                )
            )

        try:
            created = await self._recognize_and_create(photo_id, photo.file_path, crop)
        except BaseException:
            logger.warning("Scan of photo %d interrupted", photo_id)
            await self._mark_failed(photo_id)
            raise

        if isinstance(created, Failure):
            await self._mark_failed(photo_id)
            return created

        completed = await self._photos.update_ocr_status(photo_id, OcrStatus.COMPLETED)
        if isinstance(completed, Failure):
            logger.error(
                "List %d was created but photo %d could not be marked COMPLETED",
                created.data,
                photo_id,
            )
            await self._mark_failed(photo_id)
            return completed

        await self._count_usage()
        logger.info("Photo %d scanned into list %d", photo_id, created.data)
        return Success(created.data)

    async def _recognize_and_create(
        self,
        photo_id: int,
        file_path: str,
        crop: Optional[CropRect],
    ) -> Result[int]:
        try:
            if crop is None:
                text = await self._ocr.recognize_text(file_path)
            else:
                image = await self._cropper.crop_image(file_path, crop)
                text = await self._ocr.recognize_image(image, CROPPED_MIME_TYPE)
        except ListScannerError as e:
            logger.warning("OCR failed for photo %d: %s", photo_id, e.message)
            return Failure.from_error(e)
        except Exception as e:
            logger.error("OCR engine error for photo %d", photo_id, exc_info=True)
            error = OcrServiceError(context={"photo_id": photo_id, "error_type": type(e).__name__})
            error.__cause__ = e
            return Failure.from_error(error)

        if not text.strip():
            logger.info("OCR returned no text for photo %d", photo_id)
            return Failure.from_error(NoItemsDetectedError(context={"photo_id": photo_id}))

        return await self._lists.create_list_from_text(photo_id, text)

    async def _count_usage(self) -> None:
        result = await self._usage.increment_usage()
        if isinstance(result, Failure):
            logger.warning("Could not record OCR usage: %s", result.message)

    async def _mark_failed(self, photo_id: int) -> None:
        result = await self._photos.update_ocr_status(photo_id, OcrStatus.FAILED)
        if isinstance(result, Failure):
            logger.error("Could not mark photo %d as FAILED: %s", photo_id, result.message)
