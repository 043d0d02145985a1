"""
Metadata collection: the external-collaborator side of classification.

Functions:
  - get_exif_data: Extracts flat EXIF tags plus XMP/PNG-text software hints via Pillow.
  - get_image_dimensions: Probes width/height via Pillow (None on failure).
  - normalize_verification: Coerces a third-party verification payload, None on shape mismatch.
  - build_image_metadata: Folds scan result, hash and collaborator output into ImageMetadata.
  - build_metadata_summary: JSON-safe display digest of an ImageMetadata record.
"""

import io
import math
import hashlib
import logging
import numbers
import re
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import pillow_heif
from PIL import Image
from PIL.ExifTags import GPSTAGS, IFD, TAGS
from pydantic import ValidationError

from provscan.detection.container_scanner import scan
from provscan.schemas.detection import (
    C2PASummary,
    Dimensions,
    ExposureSummary,
    ImageMetadata,
    MetadataSummary,
    VerificationResult,
    VerificationSummary,
)

logger = logging.getLogger(__name__)

# HEIC/HEIF phone photos carry the richest camera EXIF
pillow_heif.register_heif_opener()

# Sub-IFD pointers in the base IFD; their values are offsets, not tags
_IFD_POINTER_TAGS = {int(IFD.Exif), int(IFD.GPSInfo), int(IFD.Interop)}

_CREATOR_TOOL_RE = re.compile(r'CreatorTool(?:="([^"]*)"|>([^<]*)<)')


def get_safe_hash(data: bytes) -> str:
    """Securely hash raw bytes using SHA-256."""
    return hashlib.sha256(data).hexdigest()


def _put_tag(target: Dict[str, Any], name: Any, value: Any) -> None:
    # Missing tags stay absent; never store empty-string sentinels
    if value is None or isinstance(value, (bytes, bytearray)):
        return
    if isinstance(value, str):
        value = value.replace("\x00", "").strip()
        if not value:
            return
    target[str(name)] = value


def get_exif_data(content: bytes) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Extract EXIF tags and software hints from raw image bytes.

    Returns (exif_tags, xmp_tags). The base IFD, the Exif sub-IFD and the GPS
    sub-IFD are flattened into one mapping keyed by tag name. xmp_tags holds
    'Software' from PNG text chunks and 'CreatorTool' from an XMP packet.
    Any Pillow failure yields ({}, {}).
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            exif_tags: Dict[str, Any] = {}
            raw = img.getexif()

            for tag, value in raw.items():
                if tag in _IFD_POINTER_TAGS:
                    continue
                _put_tag(exif_tags, TAGS.get(tag, tag), value)

            for tag, value in raw.get_ifd(IFD.Exif).items():
                _put_tag(exif_tags, TAGS.get(tag, tag), value)

            for tag, value in raw.get_ifd(IFD.GPSInfo).items():
                _put_tag(exif_tags, GPSTAGS.get(tag, tag), value)

            xmp_tags = _read_software_hints(img.info or {})
            return exif_tags, xmp_tags
    except Exception as e:
        logger.warning(f"[META] EXIF extraction failed: {e}")
        return {}, {}


def _read_software_hints(info: Mapping[str, Any]) -> Dict[str, Any]:
    hints: Dict[str, Any] = {}

    software = info.get("Software")
    if isinstance(software, str):
        _put_tag(hints, "Software", software)

    for key in ("XML:com.adobe.xmp", "xmp"):
        packet = info.get(key)
        if isinstance(packet, (bytes, bytearray)):
            packet = packet.decode("utf-8", errors="ignore")
        if not isinstance(packet, str):
            continue
        match = _CREATOR_TOOL_RE.search(packet)
        if match:
            _put_tag(hints, "CreatorTool", match.group(1) or match.group(2))
            break

    return hints


def get_image_dimensions(content: bytes) -> Optional[Dimensions]:
    try:
        with Image.open(io.BytesIO(content)) as img:
            width, height = img.size
        return Dimensions(width=width, height=height)
    except Exception as e:
        logger.warning(f"[META] Dimension probe failed: {e}")
        return None


def normalize_verification(raw: Any) -> Optional[VerificationResult]:
    """
    Coerce a verification payload into a VerificationResult.

    Accepts {status|verificationStatus|ok, issuer|signer, claims|manifest}.
    Anything that does not fit that shape becomes None instead of an error.
    """
    if raw is None:
        return None
    if isinstance(raw, VerificationResult):
        return raw
    if not isinstance(raw, Mapping):
        logger.info(f"[C2PA] Ignoring verification payload of type {type(raw).__name__}")
        return None

    status = raw.get("status") or raw.get("verificationStatus")
    if not status:
        status = "verified" if raw.get("ok") is True else "unknown"

    try:
        return VerificationResult(
            status=status,
            issuer=raw.get("issuer") or raw.get("signer") or None,
            claims=raw.get("claims") or raw.get("manifest") or None,
        )
    except ValidationError as e:
        logger.info(f"[C2PA] Verification payload rejected: {e.error_count()} error(s)")
        return None


def _coerce_dimensions(value: Union[Dimensions, Mapping[str, Any], None]) -> Optional[Dimensions]:
    if value is None or isinstance(value, Dimensions):
        return value
    try:
        return Dimensions.model_validate(value)
    except ValidationError:
        return None


def build_image_metadata(
    content: bytes,
    file_name: str = "",
    file_type: str = "",
    exif_tags: Optional[Mapping[str, Any]] = None,
    xmp_tags: Optional[Mapping[str, Any]] = None,
    dimensions: Union[Dimensions, Mapping[str, Any], None] = None,
    verification: Any = None,
) -> ImageMetadata:
    """Scan the raw bytes and fold every collaborator result into one record."""
    content = content or b""
    container_scan = scan(content)
    logger.info(
        f"[META] Scan: container={container_scan.container}, present={container_scan.present}, "
        f"segments={len(container_scan.segments)}"
    )

    return ImageMetadata(
        exif_tags=dict(exif_tags or {}),
        xmp_tags=dict(xmp_tags or {}),
        file_type=file_type or "",
        file_size=len(content),
        file_name=file_name or "",
        file_hash=get_safe_hash(content) if content else None,
        dimensions=_coerce_dimensions(dimensions),
        container_scan=container_scan,
        external_verification=normalize_verification(verification),
    )


def _jsonable(value: Any) -> Any:
    """Make EXIF values (IFDRational, tuples, ...) safe for a JSON response."""
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (tuple, list)):
        return [_jsonable(v) for v in value]
    if isinstance(value, numbers.Real):
        try:
            as_float = float(value)
        except (ValueError, ZeroDivisionError, OverflowError):
            return None
        return as_float if math.isfinite(as_float) else None
    return str(value)


def _text(value: Any) -> Optional[str]:
    return str(value) if value is not None and value != "" else None


def build_metadata_summary(metadata: ImageMetadata) -> MetadataSummary:
    exif = metadata.exif_tags
    xmp = metadata.xmp_tags

    software = exif.get("Software") or xmp.get("Software") or xmp.get("CreatorTool")
    matched = next((s for s in metadata.container_scan.segments if s.matched_signature), None)
    verification = metadata.external_verification

    return MetadataSummary(
        make=_text(exif.get("Make")),
        model=_text(exif.get("Model")),
        software=_text(software),
        exif_keys=[str(k) for k in exif.keys()],
        xmp_keys=[str(k) for k in xmp.keys()],
        mime=metadata.file_type,
        size=metadata.file_size,
        exposure=ExposureSummary(
            f_number=_jsonable(exif.get("FNumber")),
            exposure_time=_jsonable(exif.get("ExposureTime")),
            iso=_jsonable(exif.get("ISOSpeedRatings", exif.get("ISO"))),
            focal_length=_jsonable(exif.get("FocalLength")),
            date_time_original=_jsonable(exif.get("DateTimeOriginal")),
            flash=_jsonable(exif.get("Flash")),
            orientation=_jsonable(exif.get("Orientation")),
            gps_lat=_jsonable(exif.get("GPSLatitude")),
            gps_lon=_jsonable(exif.get("GPSLongitude")),
        ),
        c2pa=C2PASummary(
            present=metadata.container_scan.present,
            box_offset=matched.byte_offset if matched else None,
        ),
        c2pa_verify=VerificationSummary(
            available=verification is not None,
            status=verification.status if verification else None,
            issuer=verification.issuer if verification else None,
            claims=_jsonable(verification.claims) if verification else None,
        ),
        dimensions=metadata.dimensions,
    )
