from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Segment(BaseModel):
    """One marker segment (JPEG) or chunk (PNG) inspected for a provenance box."""
    model_config = ConfigDict(frozen=True)

    kind: str                   # "APP11" for JPEG, chunk type ("iTXt", "tEXt", "zTXt") for PNG
    byte_offset: int = Field(ge=0)
    byte_length: int = Field(ge=0)
    matched_signature: bool = False


class ContainerScanResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    present: bool = False
    container: Literal["jpeg", "png", "none"] = "none"
    segments: List[Segment] = Field(default_factory=list)


class Dimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)


class VerificationResult(BaseModel):
    """Result from the optional third-party C2PA reader. Untrusted, best-effort."""
    model_config = ConfigDict(frozen=True)

    status: str
    issuer: Optional[str] = None
    claims: Optional[Any] = None


class ImageMetadata(BaseModel):
    """Everything the classifier sees for one image. Built once, never mutated."""
    model_config = ConfigDict(frozen=True)

    exif_tags: Dict[str, Any] = Field(default_factory=dict)
    xmp_tags: Dict[str, Any] = Field(default_factory=dict)
    file_type: str = ""
    file_size: int = 0
    file_name: str = ""
    file_hash: Optional[str] = None
    dimensions: Optional[Dimensions] = None
    container_scan: ContainerScanResult = Field(default_factory=ContainerScanResult)
    external_verification: Optional[VerificationResult] = None


class EvidenceWeight(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    weight: float = Field(ge=0.0, le=1.0)
    sign: Literal[1, -1]        # +1 favors AI, -1 favors camera


class Verdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_ai: bool
    confidence: int = Field(ge=0, le=100)
    reasons: List[str]
    score: float
    breakdown: List[EvidenceWeight] = Field(default_factory=list)


class ExposureSummary(BaseModel):
    f_number: Optional[Any] = None
    exposure_time: Optional[Any] = None
    iso: Optional[Any] = None
    focal_length: Optional[Any] = None
    date_time_original: Optional[Any] = None
    flash: Optional[Any] = None
    orientation: Optional[Any] = None
    gps_lat: Optional[Any] = None
    gps_lon: Optional[Any] = None


class C2PASummary(BaseModel):
    present: bool = False
    box_offset: Optional[int] = None


class VerificationSummary(BaseModel):
    available: bool = False
    status: Optional[str] = None
    issuer: Optional[str] = None
    claims: Optional[Any] = None


class MetadataSummary(BaseModel):
    """Display-oriented digest of the metadata record (JSON-safe values only)."""
    make: Optional[str] = None
    model: Optional[str] = None
    software: Optional[str] = None
    exif_keys: List[str] = Field(default_factory=list)
    xmp_keys: List[str] = Field(default_factory=list)
    mime: str = ""
    size: int = 0
    exposure: ExposureSummary = Field(default_factory=ExposureSummary)
    c2pa: C2PASummary = Field(default_factory=C2PASummary)
    c2pa_verify: VerificationSummary = Field(default_factory=VerificationSummary)
    dimensions: Optional[Dimensions] = None


class AnalysisResponse(BaseModel):
    verdict: Verdict
    summary: MetadataSummary
    file_name: str
    file_hash: Optional[str] = None
