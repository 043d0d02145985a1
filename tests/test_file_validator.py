"""
Pure unit tests for provscan/core/file_validator.py.

Only the file name, declared content type and size are checked.
"""

import pytest
from fastapi import HTTPException
from PIL import Image

from provscan.config import settings
from provscan.core.file_validator import validate_file


# ---------------------------------------------------------------------------
# Extension / MIME + size checks
# ---------------------------------------------------------------------------


def test_valid_image_extension_and_size():
    assert validate_file("photo.jpg", 100) is True


def test_extension_is_case_insensitive():
    assert validate_file("PXL_20240301.HEIC", 100) is True


def test_image_content_type_accepts_unknown_extension():
    assert validate_file("pasted", 100, content_type="image/png") is True


@pytest.mark.parametrize("name,ctype", [("notes.txt", "text/plain"), ("clip.mp4", None), ("noext", None)])
def test_non_image_rejected_415(name, ctype):
    with pytest.raises(HTTPException) as exc:
        validate_file(name, 100, content_type=ctype)
    assert exc.value.status_code == 415
    assert exc.value.detail == "Unsupported file. Please select an image."


def test_image_too_large_raises_413():
    oversized = settings.max_image_upload_bytes + 1
    with pytest.raises(HTTPException) as exc:
        validate_file("photo.jpg", oversized)
    assert exc.value.status_code == 413


def test_exact_limit_is_allowed():
    assert validate_file("photo.jpg", settings.max_image_upload_bytes) is True


def test_image_content_type_is_case_insensitive():
    assert validate_file("upload", 100, content_type="IMAGE/JPEG") is True


def test_pixel_limit_is_configured():
    assert Image.MAX_IMAGE_PIXELS == settings.pil_max_image_pixels
