"""
Upload validation utilities.

Sets PIL.Image.MAX_IMAGE_PIXELS to prevent decompression-bomb attacks.
Damaged image content is not rejected here: the metadata readers degrade it
to "absent" evidence and the container scan still reports what it found.
"""

import os
import logging
from typing import Optional

import pillow_heif
from fastapi import HTTPException
from PIL import Image

from provscan.config import settings

# Prevent decompression-bomb attacks for all image operations
Image.MAX_IMAGE_PIXELS = settings.pil_max_image_pixels
pillow_heif.register_heif_opener()

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.webp', '.gif', '.heic', '.heif', '.tiff', '.tif', '.bmp']


def validate_file(filename: str, filesize: int, content_type: Optional[str] = None) -> bool:
    """Check file extension / MIME type and size."""
    ext = os.path.splitext(filename)[1].lower()
    is_image_type = bool(content_type) and content_type.lower().startswith("image/")

    if ext not in IMAGE_EXTENSIONS and not is_image_type:
        logger.info(f"Rejected non-image upload: {filename} ({content_type or 'no content type'})")
        raise HTTPException(status_code=415, detail="Unsupported file. Please select an image.")

    if filesize > settings.max_image_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Image too large. Max {settings.max_image_upload_bytes // 1024 // 1024}MB allowed."
        )

    return True
