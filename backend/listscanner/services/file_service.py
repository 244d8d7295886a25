"""
List Scanner Backend — Photo File Storage Service
==================================================

What:  Validates uploaded shopping list photos, writes them to disk and
       removes them again when their Photo row is deleted.
How:   Extension and size checks, then an aiofiles write into a
       date-organized directory under a UUID filename.
Who:   Used by the photo upload route and PhotoRepository.delete_photo().

Directory Structure:
    storage/
    └── 2024/
        └── 03/
            └── 15/
                ├── a1b2c3d4-5678.jpg
                └── e5f6g7h8-9012.png

Upload checks, cheapest first:
    1. Extension in ALLOWED_EXTENSIONS
    2. Content-Length header and actual size within max_file_size
    3. Non-empty content
The filename written to disk is a UUID, so no user input reaches the path.
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from listscanner.config import settings
from listscanner.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Formats the OCR engine accepts
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg"}

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


class FileService:
    """
    Owns the lifecycle of stored photo files.

    Args:
        storage_root: Override the storage directory (tests use tmp_path).
        max_file_size: Override the upload limit in bytes.
    """

    def __init__(self, storage_root: Optional[str] = None, max_file_size: Optional[int] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.max_file_size = max_file_size or settings.max_file_size
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """Return the normalized extension (".jpg") or raise ValidationError."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Reject empty files and files over the limit.

        The Content-Length header is checked as well as the real size
        because clients can misreport it.
        """
        max_mb = self.max_file_size / (1024 * 1024)

        if content_length and content_length > self.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="file")

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        now = datetime.now(timezone.utc)
        relative_path = f"{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write content under a fresh YYYY/MM/DD/<uuid><ext> path.

        Returns:
            (absolute_path, relative_path)

        Raises:
            FileStorageError: directory creation or write failed.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            ) from e

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return str(absolute_path), relative_path

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """Validate an upload and store it; returns (absolute_path, relative_path)."""
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        return await self.store_file(content, ext)

    async def delete_file(self, file_path: str) -> None:
        """
        Remove a stored photo.

        A file that is already gone is not an error.

        Raises:
            FileStorageError: the file exists but could not be removed.
        """
        path = Path(file_path)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("Delete: file already gone: %s", path.name)
            return
        except OSError as e:
            logger.error("Failed to delete file %s: %s", file_path, str(e))
            raise FileStorageError(
                message="Could not delete the photo file. Please try again.",
                context={"path": file_path, "os_error": str(e)},
            ) from e
        logger.info("Deleted file: %s", path.name)

    async def cleanup_file(self, file_path: str) -> None:
        """Best-effort removal after a failed upload; never raises."""
        try:
            await self.delete_file(file_path)
        except FileStorageError:
            logger.warning("Failed to clean up file %s", file_path)

    @staticmethod
    def mime_type_for(file_path: str) -> str:
        return MIME_TYPES.get(Path(file_path).suffix.lower(), "application/octet-stream")
