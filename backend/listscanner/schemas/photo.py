"""
List Scanner Backend — Photo Schemas
=====================================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from listscanner.models.photo import OcrStatus
from listscanner.services.image_crop_service import CropRect


class PhotoResponse(BaseModel):
    """A stored photo and its OCR progress."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    file_path: str = Field(description="Location of the stored image")
    timestamp: datetime
    ocr_status: OcrStatus


class PhotoListResponse(BaseModel):
    photos: List[PhotoResponse]


class CropRegion(BaseModel):
    """
    Part of the photo to scan, as fractions of its width and height.
    (0, 0) is the top-left corner, (1, 1) the bottom-right.
    """

    left: float = Field(ge=0.0, le=1.0)
    top: float = Field(ge=0.0, le=1.0)
    right: float = Field(ge=0.0, le=1.0)
    bottom: float = Field(ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_not_empty(self) -> "CropRegion":
        if self.right <= self.left or self.bottom <= self.top:
            raise ValueError("Crop region must have right > left and bottom > top")
        return self

    def to_crop_rect(self) -> CropRect:
        return CropRect(left=self.left, top=self.top, right=self.right, bottom=self.bottom)


class ScanRequest(BaseModel):
    crop: Optional[CropRegion] = Field(default=None, description="Scan only this region")


class ScanResponse(BaseModel):
    """Returned with 201 when a scan produced a list."""

    message: str = Field(default="Photo scanned successfully")
    photo_id: int
    list_id: int
    weekly_usage: Optional[int] = Field(
        default=None,
        description="Scans this week, including this one; absent if it could not be read",
    )
    cost_warning: bool = Field(
        default=False,
        description="Weekly usage reached the cost warning threshold and the warning was not dismissed",
    )
