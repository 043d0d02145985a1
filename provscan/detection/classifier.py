"""
Rule-based evidence classifier: AI-generated vs. camera-captured.

The verdict comes from an ordered cascade of rule evaluators. Each evaluator
looks at the pre-computed `Evidence` and either returns a Verdict or None;
the first non-None result wins. Provenance findings (JUMBF box, external
verification) are collected beforehand as reasons only and never move the score.

Cascade order:
  1. AI tool named in the software tag         -> AI, 90%
  2. Camera device evidence in EXIF            -> camera, 70..96%
  3. No EXIF, messaging-app name or dimensions -> camera, 55%
  4. Fallback: insufficient camera evidence    -> AI, 55..88%
"""

import math
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from provscan.detection.constants import (
    AI_TOOL_HINTS,
    CAMERA_APP_NAME_PATTERN,
    EDITOR_HINTS,
    EXPOSURE_TAGS,
    MESSAGING_APP_HINTS,
    MESSAGING_ASPECT_RANGE,
    MESSAGING_MAX_SIDE_RANGE,
    XMP_SOFTWARE_TAGS,
)
from provscan.schemas.detection import EvidenceWeight, ImageMetadata, Verdict

logger = logging.getLogger(__name__)


def normalize_string(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def match_any(text: str, hints: Iterable[str]) -> bool:
    if not text:
        return False
    return any(hint in text for hint in hints)


def is_present(value: Any) -> bool:
    return value is not None and value != ""


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Evidence:
    """Facts derived once from ImageMetadata and shared by every rule."""
    exif: Mapping[str, Any]
    software: str
    mime: str
    file_name: str
    width: int
    height: int
    has_make: bool
    has_model: bool
    has_lens: bool
    has_exposure: bool
    has_date: bool
    has_gps: bool
    device_score: float
    provenance_reasons: Sequence[str] = field(default_factory=tuple)

    @property
    def exif_present(self) -> bool:
        return len(self.exif) > 0

    @property
    def has_device_evidence(self) -> bool:
        return self.has_make or self.has_model or self.has_exposure or self.has_date or self.has_gps


Rule = Callable[[Evidence], Optional[Verdict]]


class EvidenceClassifier:
    """
    Deterministic classifier over an ImageMetadata record.

    Vocabularies are injected so alternative word lists can be tested without
    touching module globals; defaults come from detection/constants.py.
    """

    def __init__(
        self,
        ai_tool_hints: Iterable[str] = AI_TOOL_HINTS,
        messaging_hints: Iterable[str] = MESSAGING_APP_HINTS,
        editor_hints: Iterable[str] = EDITOR_HINTS,
        camera_app_pattern: "re.Pattern[str]" = CAMERA_APP_NAME_PATTERN,
    ) -> None:
        self.ai_tool_hints = frozenset(normalize_string(h) for h in ai_tool_hints)
        self.messaging_hints = frozenset(normalize_string(h) for h in messaging_hints)
        self.editor_hints = frozenset(normalize_string(h) for h in editor_hints)
        self.camera_app_pattern = camera_app_pattern
        self.rules: List[Rule] = [
            self._ai_tool_rule,
            self._device_capture_rule,
            self._messaging_reencode_rule,
            self._insufficient_evidence_rule,
        ]

    def classify(self, metadata: Optional[ImageMetadata]) -> Verdict:
        evidence = self.collect_evidence(metadata or ImageMetadata())
        for rule in self.rules:
            verdict = rule(evidence)
            if verdict is not None:
                logger.debug(
                    f"[CLASSIFY] {rule.__name__} fired: is_ai={verdict.is_ai}, "
                    f"confidence={verdict.confidence}, score={verdict.score}"
                )
                return verdict
        # A rule list without a terminal rule still degrades to the weakest-evidence branch
        return self._insufficient_evidence_rule(evidence)

    def collect_evidence(self, metadata: ImageMetadata) -> Evidence:
        exif = metadata.exif_tags if isinstance(metadata.exif_tags, Mapping) else {}
        xmp = metadata.xmp_tags if isinstance(metadata.xmp_tags, Mapping) else {}

        software = normalize_string(exif.get("Software"))
        if not software:
            software = next(
                (normalize_string(xmp.get(t)) for t in XMP_SOFTWARE_TAGS if is_present(xmp.get(t))),
                "",
            )

        has_make = is_present(exif.get("Make"))
        has_model = is_present(exif.get("Model"))
        has_lens = is_present(exif.get("LensModel"))
        has_exposure = any(is_present(exif.get(t)) for t in EXPOSURE_TAGS)
        has_date = is_present(exif.get("DateTimeOriginal"))
        has_gps = exif.get("GPSLatitude") is not None and exif.get("GPSLongitude") is not None

        device_score = 0.0
        if has_make and has_model:
            device_score += 2
        if has_exposure:
            device_score += 1
        if has_gps:
            device_score += 1
        if has_lens or has_date:
            device_score += 0.5

        width = height = 0
        if metadata.dimensions is not None:
            width, height = metadata.dimensions.width, metadata.dimensions.height

        return Evidence(
            exif=exif,
            software=software,
            mime=normalize_string(metadata.file_type),
            file_name=metadata.file_name or "",
            width=width,
            height=height,
            has_make=has_make,
            has_model=has_model,
            has_lens=has_lens,
            has_exposure=has_exposure,
            has_date=has_date,
            has_gps=has_gps,
            device_score=device_score,
            provenance_reasons=tuple(self._provenance_reasons(metadata)),
        )

    @staticmethod
    def _provenance_reasons(metadata: ImageMetadata) -> List[str]:
        reasons = []
        if metadata.container_scan.present:
            reasons.append("C2PA provenance data detected (JUMBF).")
        verification = metadata.external_verification
        if verification is not None:
            issuer = f" (issuer: {verification.issuer})" if verification.issuer else ""
            reasons.append(f"C2PA verification: {verification.status}{issuer}.")
        return reasons

    # --- Rules ---

    def _ai_tool_rule(self, ev: Evidence) -> Optional[Verdict]:
        if not match_any(ev.software, self.ai_tool_hints):
            return None
        return Verdict(
            is_ai=True,
            confidence=90,
            reasons=[*ev.provenance_reasons, f'Software indicates AI generator: "{ev.software}".'],
            score=5.0,
            breakdown=[EvidenceWeight(label="AI tool in Software", weight=0.9, sign=1)],
        )

    def _device_capture_rule(self, ev: Evidence) -> Optional[Verdict]:
        if not (ev.exif_present and ev.has_device_evidence):
            return None

        present = []
        if ev.has_make:
            present.append(f"Make: {ev.exif['Make']}")
        if ev.has_model:
            present.append(f"Model: {ev.exif['Model']}")
        if ev.has_exposure:
            present.append("Exposure data present")
        if ev.has_lens:
            present.append(f"Lens: {ev.exif['LensModel']}")
        if ev.has_gps:
            present.append("GPS present")
        if ev.has_date:
            present.append("DateTimeOriginal present")

        extras = (0.2 if ev.has_gps else 0) + (0.1 if ev.has_date else 0) + (0.1 if ev.has_lens else 0)
        return Verdict(
            is_ai=False,
            confidence=min(96, 70 + round_half_up(ev.device_score * 8)),
            reasons=[*ev.provenance_reasons, f"Camera metadata found ({', '.join(present)})."],
            score=-max(2.0, ev.device_score),
            breakdown=[
                EvidenceWeight(label="Camera make/model", weight=0.6 if ev.has_make and ev.has_model else 0, sign=-1),
                EvidenceWeight(label="Exposure params", weight=0.4 if ev.has_exposure else 0, sign=-1),
                EvidenceWeight(label="GPS/Date/Lens", weight=round(extras, 2), sign=-1),
            ],
        )

    def _messaging_reencode_rule(self, ev: Evidence) -> Optional[Verdict]:
        if ev.exif_present:
            return None

        lowered_name = ev.file_name.lower()
        looks_messaging_name = (
            match_any(lowered_name, self.messaging_hints)
            or self.camera_app_pattern.match(ev.file_name) is not None
        )

        looks_messaging_size = False
        if ev.width > 0 and ev.height > 0:
            max_side = max(ev.width, ev.height)
            aspect = max_side / min(ev.width, ev.height)
            side_lo, side_hi = MESSAGING_MAX_SIDE_RANGE
            aspect_lo, aspect_hi = MESSAGING_ASPECT_RANGE
            looks_messaging_size = side_lo < max_side <= side_hi and aspect_lo < aspect < aspect_hi

        if not (looks_messaging_name or looks_messaging_size):
            return None
        return Verdict(
            is_ai=False,
            confidence=55,
            reasons=[
                *ev.provenance_reasons,
                "No EXIF, but dimensions/name suggest messaging app re-encode (likely real photo).",
            ],
            score=-0.5,
            breakdown=[],
        )

    def _insufficient_evidence_rule(self, ev: Evidence) -> Verdict:
        reasons = list(ev.provenance_reasons)
        breakdown = []

        if "png" in ev.mime and not ev.exif_present:
            reasons.append("PNG has no EXIF; common for AI exports.")
            breakdown.append(EvidenceWeight(label="PNG no EXIF", weight=0.3, sign=1))

        reasons.append("Insufficient camera metadata (make/model/exposure/date/GPS).")
        breakdown.append(EvidenceWeight(label="Missing camera EXIF", weight=0.5, sign=1))

        # Editors are not conclusive either way
        if match_any(ev.software, self.editor_hints):
            reasons.append("Edited in an image editor (not conclusive).")
            breakdown.append(EvidenceWeight(label="Edited in editor", weight=0.1, sign=1))

        capped = min(2.0, ev.device_score)
        return Verdict(
            is_ai=True,
            confidence=min(88, 55 + round_half_up((2 - capped) * 10)),
            reasons=reasons,
            score=2 - ev.device_score,
            breakdown=breakdown,
        )


default_classifier = EvidenceClassifier()


def classify(metadata: Optional[ImageMetadata]) -> Verdict:
    """Classify with the default vocabularies."""
    return default_classifier.classify(metadata)
