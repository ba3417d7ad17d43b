"""Pydantic schemas for runtime validation of batch inputs and settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from heic_batch.types import ThemeName

DEFAULT_QUALITY = 90
DEFAULT_CONCURRENCY = 4


class BatchConfigSchema(BaseModel):
    """Validated input for a batch or single-file conversion run."""

    model_config = ConfigDict(extra="forbid")

    quality: int = Field(default=DEFAULT_QUALITY, ge=1, le=100)
    output_dir: Path | None = None
    preserve_metadata: bool = True
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    skip_invalid: bool = False
    progress_interval: float = Field(default=0.1, gt=0.0)

    @field_validator("output_dir", mode="before")
    @classmethod
    def _blank_output_dir(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Settings(BaseModel):
    """User settings persisted between runs."""

    model_config = ConfigDict(extra="ignore")

    quality: int = Field(default=DEFAULT_QUALITY, ge=1, le=100)
    output_dir: str = ""
    theme: ThemeName = "dark"
    preserve_metadata: bool = True

    @field_validator("output_dir")
    @classmethod
    def _strip_output_dir(cls, value: str) -> str:
        return value.strip()
