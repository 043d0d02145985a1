"""
Top-level analysis pipeline: public entry point for the /analyze route.

`analyze_image` orchestrates:
  1. Metadata extraction (EXIF + software hints) and dimension probing via Pillow
  2. Optional C2PA manifest read, time-boxed; failure or timeout means "no verification"
  3. Container scan + folding everything into one ImageMetadata record
  4. Rule-based classification into a Verdict
"""

import asyncio
import logging
import mimetypes
from typing import Optional

from provscan.config import settings
from provscan.detection.classifier import classify
from provscan.detection.metadata import (
    build_image_metadata,
    build_metadata_summary,
    get_exif_data,
    get_image_dimensions,
)
from provscan.detection.constants import JPEG_SOI, PNG_SIGNATURE
from provscan.integrations.c2pa import get_c2pa_verification
from provscan.schemas.detection import AnalysisResponse

logger = logging.getLogger(__name__)


def resolve_mime_type(content: bytes, file_name: str, content_type: Optional[str] = None) -> str:
    """Request content type first, then the filename, then the magic bytes."""
    if content_type and content_type.lower().startswith("image/"):
        return content_type.lower()

    guessed, _ = mimetypes.guess_type(file_name or "")
    if guessed and guessed.startswith("image/"):
        return guessed

    if content.startswith(JPEG_SOI):
        return "image/jpeg"
    if content.startswith(PNG_SIGNATURE):
        return "image/png"
    return ""


async def verify_provenance(content: bytes, mime_type: str) -> Optional[dict]:
    """Run the C2PA reader within its time budget. Never raises."""
    if not settings.c2pa_verify_enabled or not mime_type:
        return None
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(get_c2pa_verification, content, mime_type),
            timeout=settings.c2pa_verify_timeout_sec,
        )
    except asyncio.TimeoutError:
        logger.warning(f"[C2PA] Verification exceeded {settings.c2pa_verify_timeout_sec}s, skipping")
    except Exception as e:
        logger.warning(f"[C2PA] Verification failed: {e}")
    return None


async def analyze_image(content: bytes, file_name: str, content_type: Optional[str] = None) -> AnalysisResponse:
    """
    Full analysis for one still image.

    Collaborator failures degrade to "absent" inputs; the classifier always
    produces a verdict, even for empty or unreadable files.
    """
    content = content or b""
    mime_type = resolve_mime_type(content, file_name, content_type)
    logger.info(f"[PIPELINE] Analyzing {file_name} ({len(content)} bytes, {mime_type or 'unknown type'})")

    (exif_tags, xmp_tags), dimensions, verification = await asyncio.gather(
        asyncio.to_thread(get_exif_data, content),
        asyncio.to_thread(get_image_dimensions, content),
        verify_provenance(content, mime_type),
    )

    slim_log = {k: (str(v)[:20] + "..." if len(str(v)) > 20 else v) for k, v in exif_tags.items()}
    logger.info(f"[META] Raw Metadata (Slim): {slim_log}")

    metadata = build_image_metadata(
        content,
        file_name=file_name,
        file_type=mime_type,
        exif_tags=exif_tags,
        xmp_tags=xmp_tags,
        dimensions=dimensions,
        verification=verification,
    )
    verdict = classify(metadata)

    logger.info(
        f"[PIPELINE] Verdict for {file_name}: is_ai={verdict.is_ai}, "
        f"confidence={verdict.confidence}%, score={verdict.score:.2f}"
    )
    return AnalysisResponse(
        verdict=verdict,
        summary=build_metadata_summary(metadata),
        file_name=metadata.file_name,
        file_hash=metadata.file_hash,
    )
