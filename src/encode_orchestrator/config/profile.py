"""Encode profile loading and validation.

An encode profile is a YAML mapping whose keys are the EncodeOptions
fields (except the output file, which always comes from the caller).
Profiles are validated with a Pydantic model so typos are reported
instead of being silently ignored.

Example profile:

    format: matroska
    video_codec: libx264
    video_options:
      - preset=fast
      - crf=20
    audio_codec: aac
    video_first: true
    set_metadata:
      title: My encode
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from encode_orchestrator.config.models import MAX_FPS, MAX_OFFSET, EncodeOptions


class ProfileValidationError(Exception):
    """Error during encode profile validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


class EncodeProfileModel(BaseModel):
    """Pydantic model for an encode profile."""

    model_config = ConfigDict(extra="forbid")

    format: str | None = None
    format_options: list[str] = Field(default_factory=list)
    fps: float = Field(default=0.0, ge=0.0, le=MAX_FPS)
    max_fps: float = Field(default=0.0, ge=0.0, le=MAX_FPS)
    video_codec: str | None = None
    video_options: list[str] = Field(default_factory=list)
    audio_codec: str | None = None
    audio_options: list[str] = Field(default_factory=list)
    hard_dup: bool = False
    video_offset: float = Field(default=0.0, ge=-MAX_OFFSET, le=MAX_OFFSET)
    audio_offset: float = Field(default=0.0, ge=-MAX_OFFSET, le=MAX_OFFSET)
    copy_ts: bool = False
    raw_ts: bool = False
    auto_fps: bool = False
    never_drop: bool = False
    video_first: bool = False
    audio_first: bool = False
    copy_metadata: bool = True
    set_metadata: dict[str, str] = Field(default_factory=dict)
    remove_metadata: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_stream_order(self) -> EncodeProfileModel:
        if self.video_first and self.audio_first:
            raise ValueError("video_first and audio_first are mutually exclusive")
        return self

    def to_options(self, file: str, **overrides: Any) -> EncodeOptions:
        """Build EncodeOptions for an output file.

        Args:
            file: Output path.
            **overrides: Field values replacing the profile's. None values
                are ignored so unset CLI flags keep the profile value.

        Returns:
            Validated EncodeOptions.
        """
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return EncodeOptions(
            file=file,
            format=values["format"],
            format_options=tuple(values["format_options"]),
            fps=values["fps"],
            max_fps=values["max_fps"],
            video_codec=values["video_codec"],
            video_options=tuple(values["video_options"]),
            audio_codec=values["audio_codec"],
            audio_options=tuple(values["audio_options"]),
            hard_dup=values["hard_dup"],
            video_offset=values["video_offset"],
            audio_offset=values["audio_offset"],
            copy_ts=values["copy_ts"],
            raw_ts=values["raw_ts"],
            auto_fps=values["auto_fps"],
            never_drop=values["never_drop"],
            video_first=values["video_first"],
            audio_first=values["audio_first"],
            copy_metadata=values["copy_metadata"],
            set_metadata=tuple(dict(values["set_metadata"]).items()),
            remove_metadata=tuple(values["remove_metadata"]),
        )


def _format_validation_error(error: ValidationError) -> tuple[str, str | None]:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    if field:
        return f"{field}: {first['msg']}", field
    return first["msg"], None


def parse_profile(data: Mapping[str, Any] | None) -> EncodeProfileModel:
    """Validate a profile mapping.

    Raises:
        ProfileValidationError: If the mapping is not a valid profile.
    """
    if data is None:
        return EncodeProfileModel()
    if not isinstance(data, Mapping):
        raise ProfileValidationError("Encode profile must be a YAML mapping")
    try:
        return EncodeProfileModel.model_validate(dict(data))
    except ValidationError as e:
        message, field = _format_validation_error(e)
        raise ProfileValidationError(
            f"Invalid encode profile: {message}", field=field
        ) from e


def load_profile(path: Path) -> EncodeProfileModel:
    """Load and validate an encode profile from a YAML file.

    Args:
        path: Path to the YAML profile.

    Returns:
        Validated profile model.

    Raises:
        FileNotFoundError: If the profile file does not exist.
        ProfileValidationError: If the YAML is malformed or invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Encode profile not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ProfileValidationError(f"Invalid YAML syntax in {path}: {e}") from e

    return parse_profile(data)
