"""
List Scanner Backend — Photo SQLAlchemy Model
==============================================

What:  ORM model for the `photos` table: one row per captured image.
Who:   Written by PhotoDao; read by the scan workflow and the lists
       overview query (for the thumbnail path).

Lifecycle:
    1. Created on capture/upload (ocr_status = PENDING)
    2. PENDING → PROCESSING when a scan starts
    3. PROCESSING → COMPLETED (list created) | FAILED (OCR or parse failure)
    4. Deleted explicitly by the user; referencing lists keep living with
       photo_id set to NULL (see ShoppingList.photo_id)
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from listscanner.database import Base


class OcrStatus(str, enum.Enum):
    """
    OCR progress of a photo.

    Persisted as the member name ("PENDING", ...) through SQLAlchemy's
    non-native Enum type, which is the bidirectional mapping between the
    variant and its stored string.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Photo(Base):
    """A captured shopping list image and its OCR status."""

    __tablename__ = "photos"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Path of the stored image file (absolute, as returned by FileService)
    file_path: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Location of the stored image file",
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="Capture time (UTC)",
    )

    ocr_status: Mapped[OcrStatus] = mapped_column(
        Enum(OcrStatus, name="ocr_status", native_enum=False, length=20),
        nullable=False,
        default=OcrStatus.PENDING,
        comment="OCR progress: PENDING, PROCESSING, COMPLETED, FAILED",
    )

    __table_args__ = (
        CheckConstraint("length(file_path) > 0", name="ck_photos_file_path_not_empty"),
        Index("idx_photos_ocr_status", "ocr_status"),
        Index("idx_photos_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<Photo(id={self.id}, ocr_status='{self.ocr_status}', "
            f"timestamp='{self.timestamp}')>"
        )
