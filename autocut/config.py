from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from autocut.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
ENV_PREFIX = "AUTOCUT_"
DEFAULT_TARGET_DURATION = 60.0
RECOGNIZED_LOG_LEVELS = ("debug", "info", "warn", "error", "silent")


class ProcessingOptions(BaseModel):
    """Per-run options read by the director and the plan builder."""

    model_config = ConfigDict(frozen=True)

    target_duration: float = DEFAULT_TARGET_DURATION
    mood: str = "default"


class PipelineSettings(BaseModel):
    output_dir: Path = Path("data/outputs")
    cache_dir: Path = Path("data/cache")


class EditSettings(BaseModel):
    target_duration: float = DEFAULT_TARGET_DURATION
    mood: str = "default"


class SegmentSettings(BaseModel):
    min_segment_seconds: float = 2.0
    max_segment_seconds: float = 10.0
    silence_threshold: float = 0.1
    step_seconds: float = 1.0


class WeightSettings(BaseModel):
    audio_energy: float = 0.4
    speech_coverage: float = 0.35
    scene_activity: float = 0.25


class AnalysisSettings(BaseModel):
    language: str = "en"
    model_size: str = "small"
    asr_device: str = "auto"
    asr_compute_type: str = "default"
    enable_diarization: bool = True
    diarization_model: str = "pyannote/speaker-diarization-3.1"
    diarization_device: str = "auto"
    hf_auth_token: str | None = None
    analysis_fps: float = 2.0
    processing_width: int = 320
    scene_change_multiplier: float = 2.5
    energy_frame_seconds: float = 1.0
    sample_rate: int = 16000


class LoggingSettings(BaseModel):
    level: str = "info"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized == "warning":
            normalized = "warn"
        if normalized not in RECOGNIZED_LOG_LEVELS:
            raise ValueError(f"Unknown log level '{value}'. Expected one of: {', '.join(RECOGNIZED_LOG_LEVELS)}.")
        return normalized


class Settings(BaseModel):
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    edit: EditSettings = Field(default_factory=EditSettings)
    segments: SegmentSettings = Field(default_factory=SegmentSettings)
    weights: WeightSettings = Field(default_factory=WeightSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def processing_options(self, **overrides: Any) -> ProcessingOptions:
        """Build run options from the edit section, applying non-None overrides."""

        values = self.edit.model_dump(mode="python")
        values.update({key: value for key, value in overrides.items() if value is not None})
        return ProcessingOptions(**values)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load typed settings from YAML with environment-variable overrides."""

    explicit_path = config_path or os.getenv(f"{ENV_PREFIX}CONFIG")
    resolved_path = Path(explicit_path or DEFAULT_CONFIG_PATH)

    if resolved_path.exists():
        try:
            raw_config = yaml.safe_load(resolved_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in config file {resolved_path}: {exc}") from exc
    elif explicit_path:
        raise ConfigurationError(f"Config file not found: {resolved_path}")
    else:
        raw_config = {}

    try:
        data = Settings.model_validate(raw_config).model_dump(mode="python")

        for key, raw_value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            suffix = key[len(ENV_PREFIX) :]
            if suffix == "CONFIG":
                continue

            path = [part.lower() for part in suffix.split("__")]
            _apply_override(data, path, raw_value)

        return Settings.model_validate(data)
    except (ValidationError, ValueError) as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def _apply_override(data: dict[str, Any], path: list[str], raw_value: str) -> None:
    current: Any = data
    for segment in path[:-1]:
        if not isinstance(current, dict) or segment not in current:
            return
        current = current[segment]

    if not isinstance(current, dict):
        return

    final_key = path[-1]
    if final_key not in current:
        return

    current[final_key] = _coerce_value(raw_value, current[final_key])


def _coerce_value(raw_value: str, existing_value: Any) -> Any:
    if isinstance(existing_value, bool):
        return raw_value.lower() in {"1", "true", "yes", "on"}
    if isinstance(existing_value, int) and not isinstance(existing_value, bool):
        return int(raw_value)
    if isinstance(existing_value, float):
        return float(raw_value)
    if isinstance(existing_value, list | dict):
        return json.loads(raw_value)
    if isinstance(existing_value, Path):
        return Path(raw_value)
    return raw_value
