"""
Central application configuration.

Every tunable value lives here as a typed, documented field.
Any field can be overridden at runtime via an environment variable of the
same name (case-insensitive), e.g.:

    C2PA_VERIFY_TIMEOUT_SEC=5 uvicorn provscan.main:app
    export C2PA_VERIFY_ENABLED=false

A `.env` file at the project root is loaded automatically.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,   # LOG_LEVEL == log_level
        extra="ignore",         # silently drop unknown env vars
    )

    # ------------------------------------------------------------------ #
    # Logging                                                             #
    # ------------------------------------------------------------------ #
    log_level: str = Field(
        "INFO", description="Root log level passed to logging.basicConfig"
    )

    # ------------------------------------------------------------------ #
    # File Size Limits                                                    #
    # ------------------------------------------------------------------ #
    max_image_upload_mb: int = Field(
        20, description="Max MB for multipart image uploads"
    )
    max_image_download_mb: int = Field(
        50, description="Max MB for URL / data-URI downloads"
    )
    pil_max_image_pixels: int = Field(
        20_000_000, description="PIL decompression-bomb guard (pixels)"
    )

    # ------------------------------------------------------------------ #
    # HTTP Client                                                         #
    # ------------------------------------------------------------------ #
    http_timeout_sec: int = Field(
        30, description="Total timeout for URL downloads (seconds)"
    )

    # ------------------------------------------------------------------ #
    # C2PA Verification (optional third-party step)                       #
    # ------------------------------------------------------------------ #
    c2pa_verify_enabled: bool = Field(
        True, description="Read the C2PA manifest store via c2pa-python"
    )
    c2pa_verify_timeout_sec: float = Field(
        3.0, description="Budget for the manifest read; on expiry verification is dropped"
    )

    # ------------------------------------------------------------------ #
    # Derived byte-level properties (computed from MB fields)             #
    # ------------------------------------------------------------------ #
    @property
    def max_image_upload_bytes(self) -> int:
        return self.max_image_upload_mb * 1024 * 1024

    @property
    def max_image_download_bytes(self) -> int:
        return self.max_image_download_mb * 1024 * 1024


# Single shared instance, import this everywhere.
settings = Settings()
