"""Environment-based configuration for the plastic recognition pipeline."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pipeline settings loaded from PLASTIC_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PLASTIC_",
        case_sensitive=False,
        protected_namespaces=("settings_",),
    )

    # Sampling resolutions
    analysis_size: int = Field(default=100, ge=8)
    segmentation_size: int = Field(default=200, ge=9)

    # Region segmentation
    grid_size: int = Field(default=3, ge=1)
    max_regions: int = Field(default=3, ge=0)
    region_min_edge_density: float = Field(default=0.05, ge=0.0, le=1.0)
    region_accept_confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    # Fusion
    rule_score_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    confidence_floor: float = Field(default=0.4, ge=0.0, le=1.0)
    confidence_ceiling: float = Field(default=0.95, ge=0.0, le=1.0)

    # Learned model (None = disabled)
    model_path: Optional[str] = None
    model_device: Literal["cpu", "cuda", "mps"] = "cpu"
    model_timeout: float = Field(default=5.0, gt=0.0)
    model_queue_timeout: float = Field(default=30.0, gt=0.0)

    # Filename matching (None = fixed per-rule confidence)
    filename_jitter_seed: Optional[int] = None

    # Input limits
    max_image_kb: int = Field(default=4096, ge=1)


def get_settings() -> Settings:
    """Create and return pipeline settings."""
    return Settings()
