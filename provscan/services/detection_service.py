"""
Detection request helpers: URL / base64 data-URI image downloading.
"""

import base64
import binascii
import logging
from typing import Optional, Tuple

import aiohttp
from fastapi import HTTPException

from provscan.config import settings
from provscan.integrations import http_client as http_module

logger = logging.getLogger(__name__)

# (MIME fragment, suffix); first hit wins
_MIME_SUFFIXES = (
    ("png", ".png"),
    ("jpeg", ".jpg"),
    ("jpg", ".jpg"),
    ("webp", ".webp"),
    ("gif", ".gif"),
    ("heic", ".heic"),
    ("heif", ".heif"),
    ("tiff", ".tiff"),
    ("bmp", ".bmp"),
)

_URL_SUFFIXES = (".png", ".jpg", ".jpeg", ".webp", ".gif", ".heic", ".heif", ".tiff", ".tif", ".bmp")


def _suffix_for(content_type: str, url: str = "") -> str:
    content_type = (content_type or "").lower()
    for fragment, suffix in _MIME_SUFFIXES:
        if fragment in content_type:
            return suffix

    lower_url = url.lower().split("?", 1)[0]
    for suffix in _URL_SUFFIXES:
        if lower_url.endswith(suffix):
            return suffix
    return ".jpg"


def _name_from_url(url: str, suffix: str) -> str:
    """Last path component of the URL (the camera/app auto-name matters to the classifier)."""
    tail = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    if tail and "." in tail:
        return tail
    return f"downloaded_image{suffix}"


async def download_image(
    url: str, max_size: int = settings.max_image_download_bytes
) -> Tuple[bytes, str, Optional[str]]:
    """
    Downloads an image from a URL or decodes a base64 data URI.
    Returns (content, file_name, content_type).
    """
    if url.startswith("data:"):
        try:
            header, data_str = url.split(",", 1)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid data URI")
        if ";base64" not in header:
            raise HTTPException(status_code=400, detail="Only base64 data URIs are supported")
        try:
            content = base64.b64decode(data_str, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error(f"Error decoding data URI: {e}")
            raise HTTPException(status_code=400, detail="Invalid data URI")
        if len(content) > max_size:
            raise HTTPException(status_code=400, detail=f"Image too large (max {max_size // (1024*1024)}MB)")
        mime_type = header[len("data:"):].split(";", 1)[0] or None
        return content, f"pasted_image{_suffix_for(mime_type or '')}", mime_type

    if not url.lower().startswith(("http://", "https://")):
        raise HTTPException(status_code=400, detail="Only http(s) and data: URLs are supported")

    async with http_module.request_session() as session:
        try:
            async with session.get(url) as response:
                if response.status != 200:
                    raise HTTPException(
                        status_code=400,
                        detail=f"Failed to fetch image from URL: Status {response.status}"
                    )
                content = await response.read()
                if len(content) > max_size:
                    raise HTTPException(
                        status_code=400,
                        detail=f"Image too large (max {max_size // (1024*1024)}MB)"
                    )
                content_type = response.headers.get("Content-Type", "")
        except aiohttp.ClientError as e:
            raise HTTPException(status_code=400, detail=f"Error fetching image: {str(e)}")

    mime_type = content_type.split(";", 1)[0].strip() or None
    if mime_type and ("application" in mime_type or "octet-stream" in mime_type):
        mime_type = None
    suffix = _suffix_for(mime_type or "", url)
    logger.info(f"[DOWNLOAD] Fetched {len(content)} bytes ({mime_type or 'unknown type'}) from URL")
    return content, _name_from_url(url, suffix), mime_type
