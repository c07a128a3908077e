from __future__ import annotations

from pathlib import Path
from typing import Any

from autocut.models import TranscriptEntry


def transcribe(
    audio_path: str | Path,
    language: str = "en",
    model_size: str = "small",
    device: str = "auto",
    compute_type: str = "default",
) -> list[TranscriptEntry]:
    """Transcribe an audio track with faster-whisper into ordered transcript entries."""

    source_path = Path(audio_path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Audio file not found: {source_path}")

    from faster_whisper import WhisperModel

    model = WhisperModel(model_size, device=device, compute_type=compute_type)
    segments_iter, _info = model.transcribe(
        str(source_path),
        language=language,
        vad_filter=True,
        word_timestamps=False,
    )
    return to_transcript_entries(segments_iter)


def to_transcript_entries(segments: Any) -> list[TranscriptEntry]:
    entries: list[TranscriptEntry] = []
    for segment in segments:
        text = str(segment.text).strip()
        if not text:
            continue
        start = round(float(segment.start), 3)
        end = max(round(float(segment.end), 3), start)
        entries.append(TranscriptEntry(text=text, start_time=start, end_time=end))

    entries.sort(key=lambda entry: (entry.start_time, entry.end_time))
    return entries
