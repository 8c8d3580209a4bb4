"""Runtime configuration and settings management."""

from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="BATCHROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv", "cycling", "walking", "foot", "bike", "car"] = Field(
        default="driving",
        description="OSRM profile used when requesting routes.",
    )
    osrm_timeout_seconds: float = Field(default=30.0, gt=0.0)
    osrm_max_retries: int = Field(default=3, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    progress_every: int = Field(
        default=10,
        description="Number of progress notifications per batch; 0 disables them.",
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        description="Default worker count when a batch is dispatched to a thread pool by size.",
    )
    average_speed_kmh: float = Field(
        default=40.0,
        gt=0.0,
        description="Speed used to estimate durations for straight-line routes.",
    )

    @field_validator("osrm_base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        return text.rstrip("/")


settings = Settings()
