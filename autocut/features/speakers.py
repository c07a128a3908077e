from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from autocut.models import SpeakerInterval, SpeakerTrack


def diarize(
    audio_path: str | Path,
    hf_auth_token: str | None = None,
    pipeline_model: str = "pyannote/speaker-diarization-3.1",
    device: str = "auto",
) -> list[SpeakerTrack]:
    """Run pyannote diarization and return one interval track per speaker."""

    source_path = Path(audio_path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Audio file not found: {source_path}")

    from pyannote.audio import Pipeline

    pipeline = _load_pyannote_pipeline(
        pipeline_class=Pipeline,
        pipeline_model=pipeline_model,
        hf_auth_token=hf_auth_token,
    )
    pipeline.to(_resolve_torch_device(device))
    diarization = pipeline(str(source_path))

    turns = [
        (str(speaker), float(segment.start), float(segment.end))
        for segment, _, speaker in diarization.itertracks(yield_label=True)
    ]
    return merge_speaker_turns(turns)


def merge_speaker_turns(turns: Iterable[tuple[str, float, float]]) -> list[SpeakerTrack]:
    """Group raw ``(speaker, start, end)`` turns into ordered, non-overlapping tracks.

    Turns of the same speaker that touch or overlap are merged. Tracks are sorted by
    speaker id so output is stable across runs.
    """

    by_speaker: dict[str, list[tuple[float, float]]] = defaultdict(list)
    for speaker, start, end in turns:
        if end <= start:
            continue
        by_speaker[speaker].append((start, end))

    tracks: list[SpeakerTrack] = []
    for speaker in sorted(by_speaker):
        merged: list[list[float]] = []
        for start, end in sorted(by_speaker[speaker]):
            if merged and start <= merged[-1][1]:
                merged[-1][1] = max(merged[-1][1], end)
            else:
                merged.append([start, end])

        tracks.append(
            SpeakerTrack(
                speaker_id=speaker,
                intervals=tuple(SpeakerInterval(start=round(start, 3), end=round(end, 3)) for start, end in merged),
            )
        )

    return tracks


def _load_pyannote_pipeline(*, pipeline_class: Any, pipeline_model: str, hf_auth_token: str | None) -> Any:
    if hf_auth_token:
        try:
            return pipeline_class.from_pretrained(pipeline_model, use_auth_token=hf_auth_token)
        except TypeError as exc:
            if "use_auth_token" not in str(exc):
                raise
            return pipeline_class.from_pretrained(pipeline_model, token=hf_auth_token)

    return pipeline_class.from_pretrained(pipeline_model)


def _resolve_torch_device(device: str) -> Any:
    import torch

    normalized = device.strip().lower()
    if normalized == "auto":
        normalized = "cuda" if torch.cuda.is_available() else "cpu"

    return torch.device(normalized)
