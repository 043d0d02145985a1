"""
Raw container scanner for embedded provenance boxes (JUMBF / C2PA).

Walks the JPEG marker stream or the PNG chunk stream directly, without decoding
pixels. Malformed or truncated input never raises: the walk stops where the
structure breaks and whatever was parsed up to that point is returned.

Functions:
  - scan: Detects the container and returns a ContainerScanResult.
"""

import logging
import struct
from typing import List, Union

from provscan.detection.constants import (
    JPEG_MARKER_APP11,
    JPEG_MARKER_EOI,
    JPEG_MARKER_SOS,
    JPEG_SOI,
    JUMBF_SIGNATURE,
    PNG_IEND,
    PNG_PROVENANCE_HINTS,
    PNG_SIGNATURE,
    PNG_TEXT_CHUNKS,
)
from provscan.schemas.detection import ContainerScanResult, Segment

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


def scan(data: BytesLike) -> ContainerScanResult:
    """
    Detect the container type and search it for a provenance box.

    JPEG is tried first; PNG only when the JPEG signature is absent.
    Returns on the first matching segment.
    """
    buf = bytes(data or b"")

    if len(buf) >= 4 and buf.startswith(JPEG_SOI):
        return _scan_jpeg(buf)

    if len(buf) >= len(PNG_SIGNATURE) and buf.startswith(PNG_SIGNATURE):
        return _scan_png(buf)

    return ContainerScanResult(present=False, container="none", segments=[])


def _scan_jpeg(buf: bytes) -> ContainerScanResult:
    segments: List[Segment] = []
    size = len(buf)
    i = 2

    while i + 4 <= size:
        if buf[i] != 0xFF:
            i += 1
            continue

        marker_offset = i
        marker = buf[i + 1]
        i += 2

        # Compressed scan data follows SOS; it is not marker-structured
        if marker in (JPEG_MARKER_EOI, JPEG_MARKER_SOS):
            break

        (seg_len,) = struct.unpack(">H", buf[i:i + 2])
        if seg_len < 2:
            logger.debug(f"[SCAN] JPEG segment length {seg_len} at {marker_offset}, stopping")
            break

        seg_start = i + 2
        seg_end = i + seg_len
        if seg_end > size:
            logger.debug(f"[SCAN] JPEG truncated at offset {marker_offset} (needs {seg_end}, has {size})")
            break

        if marker == JPEG_MARKER_APP11:
            payload = buf[seg_start:seg_end]
            has_jumbf = payload[:len(JUMBF_SIGNATURE)] == JUMBF_SIGNATURE
            segments.append(Segment(
                kind="APP11",
                byte_offset=marker_offset,
                byte_length=seg_len,
                matched_signature=has_jumbf,
            ))
            if has_jumbf:
                logger.info(f"[SCAN] JUMBF box found in JPEG APP11 at offset {marker_offset}")
                return ContainerScanResult(present=True, container="jpeg", segments=segments)

        i = seg_end

    return ContainerScanResult(present=False, container="jpeg", segments=segments)


def _scan_png(buf: bytes) -> ContainerScanResult:
    segments: List[Segment] = []
    size = len(buf)
    p = len(PNG_SIGNATURE)

    while p + 8 <= size:
        (length,) = struct.unpack(">I", buf[p:p + 4])
        chunk_type = buf[p + 4:p + 8].decode("latin-1")
        data_start = p + 8
        data_end = data_start + length

        # CRC (4 bytes) must fit too
        if data_end + 4 > size:
            logger.debug(f"[SCAN] PNG chunk {chunk_type!r} truncated at offset {p}")
            break

        if chunk_type in PNG_TEXT_CHUNKS:
            matched = _text_has_provenance(buf[data_start:data_end])
            segments.append(Segment(
                kind=chunk_type,
                byte_offset=p,
                byte_length=length,
                matched_signature=matched,
            ))
            if matched:
                logger.info(f"[SCAN] C2PA/JUMBF reference found in PNG {chunk_type} at offset {p}")
                return ContainerScanResult(present=True, container="png", segments=segments)

        p = data_end + 4
        if chunk_type == PNG_IEND:
            break

    return ContainerScanResult(present=False, container="png", segments=segments)


def _text_has_provenance(raw: bytes) -> bool:
    """Best-effort text decode of a PNG text chunk, searched case-insensitively."""
    try:
        text = raw.decode("utf-8", errors="ignore").lower()
    except (UnicodeError, LookupError):
        return False
    return any(hint in text for hint in PNG_PROVENANCE_HINTS)
