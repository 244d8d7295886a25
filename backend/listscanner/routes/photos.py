"""
List Scanner Backend — Photo Route Handlers
============================================

What:  Upload, list, fetch, delete and scan shopping list photos.
How:   Thin handlers over PhotoRepository / ScanService. Failures are raised
       as their ListScannerError and rendered by the global handlers.

Request Flow (POST /api/photos):
    1. Client sends multipart/form-data with a 'file' field
    2. FileService validates extension and size and stores the image
    3. A Photo row is inserted with ocr_status = PENDING
    4. If the insert fails, the stored file is removed in the background

Scanning is a separate step (POST /api/photos/{id}/scan) so a failed scan
can be retried without uploading again.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, File, UploadFile
from fastapi.responses import FileResponse

from listscanner.exceptions import NotFoundError
from listscanner.models.photo import OcrStatus, Photo
from listscanner.result import Failure, unwrap
from listscanner.routes.dependencies import AppServices, get_services
from listscanner.schemas.common import ErrorResponse
from listscanner.schemas.photo import PhotoListResponse, PhotoResponse, ScanRequest, ScanResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/photos", tags=["Photos"])


async def _get_photo_or_404(services: AppServices, photo_id: int) -> Photo:
    photo = unwrap(await services.photos.get_photo_by_id(photo_id))
    if photo is None:
        raise NotFoundError(resource="photo", resource_id=str(photo_id))
    return photo


@router.post(
    "",
    status_code=201,
    response_model=PhotoResponse,
    responses={
        400: {"description": "Invalid file type or size", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Upload a shopping list photo",
)
async def upload_photo(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="Shopping list photo (PNG, JPG or JPEG)"),
    services: AppServices = Depends(get_services),
) -> PhotoResponse:
    try:
        content = await file.read()
        logger.info(
            "Received photo upload: filename=%s, size=%d bytes",
            file.filename or "unknown",
            len(content),
        )
        absolute_path, _ = await services.file_service.validate_and_store(
            filename=file.filename or "upload.jpg",
            content=content,
            content_length=file.size,
        )
    finally:
        await file.close()

    photo = Photo(
        file_path=absolute_path,
        timestamp=datetime.now(timezone.utc),
        ocr_status=OcrStatus.PENDING,
    )
    result = await services.photos.insert_photo(photo)
    if isinstance(result, Failure):
        background_tasks.add_task(services.file_service.cleanup_file, absolute_path)
        raise result.error

    return PhotoResponse.model_validate(photo)


@router.get("", response_model=PhotoListResponse, summary="List photos, newest first")
async def list_photos(services: AppServices = Depends(get_services)) -> PhotoListResponse:
    photos = unwrap(await services.photos.get_all_photos())
    return PhotoListResponse(photos=[PhotoResponse.model_validate(p) for p in photos])


@router.get(
    "/{photo_id}",
    response_model=PhotoResponse,
    responses={404: {"description": "Photo not found", "model": ErrorResponse}},
    summary="Get a photo",
)
async def get_photo(photo_id: int, services: AppServices = Depends(get_services)) -> PhotoResponse:
    return PhotoResponse.model_validate(await _get_photo_or_404(services, photo_id))


@router.get(
    "/{photo_id}/image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "Photo or file not found", "model": ErrorResponse},
    },
    summary="Download the stored image",
)
async def get_photo_image(photo_id: int, services: AppServices = Depends(get_services)) -> FileResponse:
    photo = await _get_photo_or_404(services, photo_id)
    # file_path was produced by FileService; it is never client input
    return FileResponse(
        path=photo.file_path,
        media_type=services.file_service.mime_type_for(photo.file_path),
        headers={"Cache-Control": "private, max-age=3600"},
    )


@router.delete(
    "/{photo_id}",
    status_code=204,
    responses={
        404: {"description": "Photo not found", "model": ErrorResponse},
        500: {"description": "File could not be removed", "model": ErrorResponse},
    },
    summary="Delete a photo and its image file",
    description="Lists created from the photo are kept and lose their photo link.",
)
async def delete_photo(photo_id: int, services: AppServices = Depends(get_services)) -> None:
    deleted = unwrap(await services.photos.delete_photo(photo_id))
    if not deleted:
        raise NotFoundError(resource="photo", resource_id=str(photo_id))


@router.post(
    "/{photo_id}/scan",
    status_code=201,
    response_model=ScanResponse,
    responses={
        400: {"description": "Scan already in progress", "model": ErrorResponse},
        403: {"description": "Cloud OCR consent not given", "model": ErrorResponse},
        404: {"description": "Photo not found", "model": ErrorResponse},
        422: {"description": "No list items detected, or the region could not be cropped", "model": ErrorResponse},
        503: {"description": "OCR engine unavailable", "model": ErrorResponse},
    },
    summary="Recognize the photo's text and create a list from it",
    description="Send a crop region to scan only part of the photo.",
)
async def scan_photo(
    photo_id: int,
    body: Optional[ScanRequest] = Body(default=None),
    services: AppServices = Depends(get_services),
) -> ScanResponse:
    crop = body.crop.to_crop_rect() if body is not None and body.crop is not None else None
    list_id = unwrap(await services.scanner.scan_photo(photo_id, crop=crop))

    # The list already exists; a failed usage read only drops the usage fields
    usage = await services.usage.get_usage_summary()
    if isinstance(usage, Failure):
        logger.warning("Scan of photo %d succeeded without usage figures: %s", photo_id, usage.message)
        return ScanResponse(photo_id=photo_id, list_id=list_id)
    return ScanResponse(
        photo_id=photo_id,
        list_id=list_id,
        weekly_usage=usage.data.weekly_usage,
        cost_warning=usage.data.show_cost_warning,
    )
