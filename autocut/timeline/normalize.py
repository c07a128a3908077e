from __future__ import annotations

from bisect import bisect_left

from autocut.models import AudioSignals, NormalizedTimeline, SignalData, TimePoint, TranscriptEntry

SCENE_CHANGE_TOLERANCE_SECONDS = 0.5


def normalize_signals(signals: SignalData, step_seconds: float = 1.0) -> NormalizedTimeline:
    """Resample a signal bundle onto a fixed-step timeline from 0 to its duration."""

    if step_seconds <= 0:
        raise ValueError("step_seconds must be positive.")

    time_points: list[TimePoint] = []
    index = 0
    while True:
        t = round(index * step_seconds, 6)
        if t > signals.duration:
            break
        time_points.append(
            TimePoint(
                time=t,
                audio_energy=_energy_at(t, signals.audio),
                is_speech=_is_speech(t, signals.audio.transcription),
                is_scene_change=_is_scene_change(t, signals.video.scene_changes),
            )
        )
        index += 1

    return NormalizedTimeline(time_points=tuple(time_points), total_duration=signals.duration)


def _energy_at(t: float, audio: AudioSignals) -> float:
    # nearest sample at or after t; past the end, hold the last value
    if not audio.timestamps:
        return 0.0
    position = bisect_left(audio.timestamps, t)
    if position >= len(audio.timestamps):
        return audio.energy[-1]
    return audio.energy[position]


def _is_speech(t: float, transcription: tuple[TranscriptEntry, ...]) -> bool:
    return any(entry.start_time <= t <= entry.end_time for entry in transcription)


def _is_scene_change(t: float, scene_changes: tuple[float, ...]) -> bool:
    return any(abs(change - t) < SCENE_CHANGE_TOLERANCE_SECONDS for change in scene_changes)
