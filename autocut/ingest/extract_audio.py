from __future__ import annotations

import subprocess
from pathlib import Path


def extract_audio_track(
    video_path: str,
    cache_dir: str | Path = "data/cache",
    target_sample_rate: int = 16000,
) -> Path:
    """Extract the default audio stream as mono 16-bit WAV into the ingest cache."""

    source_path = Path(video_path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Video file not found: {source_path}")

    output_path = Path(cache_dir).expanduser().resolve() / "ingest" / source_path.stem / "audio.wav"
    if output_path.exists():
        return output_path

    output_path.parent.mkdir(parents=True, exist_ok=True)
    command = [
        "ffmpeg",
        "-v",
        "error",
        "-y",
        "-i",
        str(source_path),
        "-map",
        "0:a:0",
        "-vn",
        "-ac",
        "1",
        "-ar",
        str(target_sample_rate),
        "-c:a",
        "pcm_s16le",
        str(output_path),
    ]

    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise RuntimeError("ffmpeg executable was not found. Install FFmpeg so ffmpeg is available on PATH.") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        details = f" ffmpeg stderr: {stderr}" if stderr else ""
        raise RuntimeError(f"ffmpeg failed to extract audio from {source_path}.{details}") from exc

    return output_path
