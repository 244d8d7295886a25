"""
List Scanner Backend — Photo Repository
========================================

Result-returning façade over PhotoDao. Deleting a photo also removes its
stored image file. The file goes first: a file that cannot be removed keeps
the row. If the row delete then fails, the row is left without a file; that
case is logged at error level with the photo id and path.
"""

import logging
from typing import List, Optional

from listscanner.models.photo import OcrStatus, Photo
from listscanner.repositories.base import BaseRepository
from listscanner.result import Result, Success
from listscanner.services.file_service import FileService
from listscanner.store.live_query import LiveQuery
from listscanner.store.photo_dao import PhotoDao

logger = logging.getLogger(__name__)


class PhotoRepository(BaseRepository):
    def __init__(self, photo_dao: PhotoDao, file_service: FileService):
        self._dao = photo_dao
        self._files = file_service

    def observe_all_photos(self) -> LiveQuery[List[Photo]]:
        """All photos, newest first, re-emitted after every photo change."""
        return self._dao.observe_all()

    async def get_all_photos(self) -> Result[List[Photo]]:
        return await self._guard("load photos", self._dao.get_all)

    async def get_photo_by_id(self, photo_id: int) -> Result[Optional[Photo]]:
        return await self._guard(
            "load the photo",
            lambda: self._dao.get_by_id(photo_id),
            photo_id=photo_id,
        )

    async def insert_photo(self, photo: Photo) -> Result[int]:
        return await self._guard("save the photo", lambda: self._dao.insert(photo))

    async def delete_photo(self, photo_id: int) -> Result[bool]:
        """
        Delete the photo's file, then its row.

        Lists created from the photo survive with photo_id = NULL.
        Success(False) when no such photo exists.
        """

        async def operation() -> bool:
            photo = await self._dao.get_by_id(photo_id)
            if photo is None:
                return False
            await self._files.delete_file(photo.file_path)
            try:
                return await self._dao.delete(photo_id)
            except Exception:
                logger.error(
                    "Photo %d kept its row after its file %s was removed",
                    photo_id,
                    photo.file_path,
                )
                raise

        result = await self._guard("delete the photo", operation, photo_id=photo_id)
        if isinstance(result, Success) and result.data:
            logger.info("Deleted photo %d", photo_id)
        return result

    async def update_ocr_status(self, photo_id: int, status: OcrStatus) -> Result[bool]:
        return await self._guard(
            "update the photo status",
            lambda: self._dao.update_ocr_status(photo_id, status),
            photo_id=photo_id,
            status=status.value,
        )

    async def claim_for_scan(self, photo_id: int) -> Result[bool]:
        """Success(True) if this caller moved the photo into PROCESSING."""
        return await self._guard(
            "start the scan",
            lambda: self._dao.claim_for_scan(photo_id),
            photo_id=photo_id,
        )
