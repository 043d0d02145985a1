from provscan.schemas.detection import (
    AnalysisResponse,
    ContainerScanResult,
    Dimensions,
    EvidenceWeight,
    ImageMetadata,
    MetadataSummary,
    Segment,
    Verdict,
    VerificationResult,
)

__all__ = [
    "AnalysisResponse",
    "ContainerScanResult",
    "Dimensions",
    "EvidenceWeight",
    "ImageMetadata",
    "MetadataSummary",
    "Segment",
    "Verdict",
    "VerificationResult",
]
