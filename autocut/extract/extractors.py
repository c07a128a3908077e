from __future__ import annotations

import logging
from pathlib import Path

from autocut.config import AnalysisSettings
from autocut.features.energy import analyze_energy
from autocut.features.scenes import detect_scenes
from autocut.features.speakers import diarize
from autocut.features.transcribe import transcribe
from autocut.ingest.extract_audio import extract_audio_track
from autocut.models import AudioSignals, VideoInput, VideoSignals

logger = logging.getLogger(__name__)


def extract_audio_signals(
    video_input: VideoInput,
    *,
    settings: AnalysisSettings,
    cache_dir: str | Path = "data/cache",
) -> AudioSignals:
    """Energy curve, transcript and speaker tracks for one video's default audio stream."""

    audio_path = extract_audio_track(
        video_input.file_path,
        cache_dir=cache_dir,
        target_sample_rate=settings.sample_rate,
    )
    timestamps, energy = analyze_energy(audio_path, frame_seconds=settings.energy_frame_seconds)
    logger.debug("Energy curve for %s has %d frames", video_input.video_id, len(timestamps))

    transcription = transcribe(
        audio_path,
        language=settings.language,
        model_size=settings.model_size,
        device=settings.asr_device,
        compute_type=settings.asr_compute_type,
    )
    logger.debug("Transcribed %d entries for %s", len(transcription), video_input.video_id)

    speakers = []
    if settings.enable_diarization:
        speakers = diarize(
            audio_path,
            hf_auth_token=settings.hf_auth_token,
            pipeline_model=settings.diarization_model,
            device=settings.diarization_device,
        )
        logger.debug("Diarization found %d speakers for %s", len(speakers), video_input.video_id)

    return AudioSignals(
        timestamps=tuple(timestamps),
        energy=tuple(energy),
        transcription=tuple(transcription),
        speakers=tuple(speakers),
    )


def extract_video_signals(video_input: VideoInput, *, settings: AnalysisSettings) -> VideoSignals:
    signals = detect_scenes(
        video_input.file_path,
        analysis_fps=settings.analysis_fps,
        processing_width=settings.processing_width,
        scene_change_multiplier=settings.scene_change_multiplier,
    )
    logger.debug("Detected %d scenes for %s", len(signals.visual_types), video_input.video_id)
    return signals
