"""
List Scanner Backend — Image Crop Service
==========================================

What:  Cuts the user-selected region out of a stored photo so only that part
       is sent to the OCR engine.
How:   Pillow, run in a worker thread (decoding and re-encoding block).
Who:   ScanService, when a scan request carries a crop region.

Coordinates:
    CropRect is normalized: (0, 0) is the top-left corner of the image and
    (1, 1) the bottom-right, so a region stays valid whatever resolution the
    image has. The rectangle is clamped to the image and to a minimum size
    of 10% per side before it is applied.

Output:
    JPEG bytes (quality 95), EXIF orientation applied first so the region
    matches what the user saw. Images larger than MAX_DIMENSION on a side
    are downscaled before cropping.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from listscanner.exceptions import FileStorageError, ImageCropError

logger = logging.getLogger(__name__)

MAX_DIMENSION = 4096
MIN_SIZE_FRACTION = 0.1
CROPPED_MIME_TYPE = "image/jpeg"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


@dataclass(frozen=True)
class CropRect:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def coerce_in_bounds(self) -> "CropRect":
        left = _clamp(self.left, 0.0, 1.0 - MIN_SIZE_FRACTION)
        top = _clamp(self.top, 0.0, 1.0 - MIN_SIZE_FRACTION)
        return CropRect(
            left=left,
            top=top,
            right=_clamp(self.right, left + MIN_SIZE_FRACTION, 1.0),
            bottom=_clamp(self.bottom, top + MIN_SIZE_FRACTION, 1.0),
        )

    def to_pixel_box(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower) in pixels, at least 1px wide and tall."""
        left = min(int(self.left * width), width - 1)
        top = min(int(self.top * height), height - 1)
        right = max(int(self.right * width), left + 1)
        bottom = max(int(self.bottom * height), top + 1)
        return left, top, min(right, width), min(bottom, height)


class ImageCropService:
    async def crop_image(self, image_path: str, crop: CropRect) -> bytes:
        """
        Return the cropped region of `image_path` as JPEG bytes.

        Raises:
            FileStorageError: The image file does not exist.
            ImageCropError: The image cannot be decoded or is too large.
        """
        region = crop.coerce_in_bounds()
        try:
            data = await asyncio.to_thread(self._crop, image_path, region)
        except FileNotFoundError as e:
            raise FileStorageError(
                message="Photo file not found",
                context={"file": Path(image_path).name},
            ) from e
        except (MemoryError, Image.DecompressionBombError) as e:
            logger.warning("Image %s too large to crop", Path(image_path).name)
            raise ImageCropError(
                message="Image too large to crop. Try scanning the full image instead.",
                context={"file": Path(image_path).name},
            ) from e
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning("Could not crop image %s: %s", Path(image_path).name, e)
            raise ImageCropError(context={"file": Path(image_path).name}) from e

        logger.info(
            "Cropped %s to region (%.2f, %.2f, %.2f, %.2f): %d bytes",
            Path(image_path).name,
            region.left,
            region.top,
            region.right,
            region.bottom,
            len(data),
        )
        return data

    @staticmethod
    def _crop(image_path: str, region: CropRect) -> bytes:
        with Image.open(image_path) as img:
            oriented = ImageOps.exif_transpose(img)
            if max(oriented.size) > MAX_DIMENSION:
                oriented.thumbnail((MAX_DIMENSION, MAX_DIMENSION))
            cropped = oriented.crop(region.to_pixel_box(*oriented.size))

            buffer = io.BytesIO()
            cropped.convert("RGB").save(buffer, format="JPEG", quality=95)
            return buffer.getvalue()
