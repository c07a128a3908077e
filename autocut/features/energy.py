from __future__ import annotations

import wave
from pathlib import Path

import numpy as np


def analyze_energy(audio_path: str | Path, frame_seconds: float = 1.0) -> tuple[list[float], list[float]]:
    """Compute a per-frame loudness curve scaled into [0, 1].

    Returns parallel ``(timestamps, energy)`` lists; each timestamp is the frame start
    and each energy value is the frame RMS divided by the loudest frame's RMS.
    """

    source_path = Path(audio_path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Audio file not found: {source_path}")

    samples, sample_rate = _read_wav_mono(source_path)
    frame_size = max(int(round(sample_rate * max(frame_seconds, 0.1))), 1)

    timestamps, rms_values = _frame_rms(samples=samples, sample_rate=sample_rate, frame_size=frame_size)
    return timestamps, _normalize_peak(rms_values)


def _read_wav_mono(path: Path) -> tuple[np.ndarray, int]:
    with wave.open(str(path), "rb") as wav_file:
        channels = wav_file.getnchannels()
        sample_rate = int(wav_file.getframerate())
        sample_width = wav_file.getsampwidth()
        frames = wav_file.readframes(wav_file.getnframes())

    if sample_width != 2:
        raise ValueError("Only 16-bit PCM WAV input is supported for energy analysis.")

    samples = np.frombuffer(frames, dtype=np.int16)
    if channels > 1:
        samples = samples.reshape(-1, channels).mean(axis=1).astype(np.int16)

    normalized = samples.astype(np.float32) / 32768.0
    return normalized, sample_rate


def _frame_rms(samples: np.ndarray, sample_rate: int, frame_size: int) -> tuple[list[float], list[float]]:
    if sample_rate <= 0 or len(samples) == 0:
        return [], []

    timestamps: list[float] = []
    rms_values: list[float] = []
    for start in range(0, len(samples), frame_size):
        segment = samples[start : start + frame_size]
        if len(segment) == 0:
            continue
        timestamps.append(round(start / sample_rate, 3))
        rms_values.append(float(np.sqrt(np.mean(np.square(segment)))))
    return timestamps, rms_values


def _normalize_peak(rms_values: list[float]) -> list[float]:
    peak = max(rms_values, default=0.0)
    if peak <= 0:
        return [0.0 for _ in rms_values]
    return [round(min(value / peak, 1.0), 6) for value in rms_values]
