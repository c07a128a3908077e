from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any

SHARED_LIBRARY_MARKER = "error while loading shared libraries"


def probe_media(video_path: str) -> dict[str, Any]:
    """Probe media metadata via ffprobe and return a normalized summary."""

    source_path = Path(video_path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Video file not found: {source_path}")

    payload = _run_ffprobe(source_path)
    format_entry = payload.get("format", {})
    streams = payload.get("streams", [])
    video_stream = next((stream for stream in streams if stream.get("codec_type") == "video"), {})

    return {
        "video_path": str(source_path),
        "duration_seconds": _to_float(format_entry.get("duration")),
        "width": _to_int(video_stream.get("width")),
        "height": _to_int(video_stream.get("height")),
        "avg_frame_rate": video_stream.get("avg_frame_rate"),
        "audio_stream_count": sum(1 for stream in streams if stream.get("codec_type") == "audio"),
        "video_stream_count": sum(1 for stream in streams if stream.get("codec_type") == "video"),
    }


def probe_duration_seconds(video_path: str) -> float:
    duration = probe_media(video_path)["duration_seconds"]
    if duration is None:
        raise RuntimeError(f"ffprobe reported no duration for {video_path}.")
    return duration


def _run_ffprobe(video_path: Path) -> dict[str, Any]:
    command = [
        "ffprobe",
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(video_path),
    ]

    try:
        completed = subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise RuntimeError(
            "ffprobe executable was not found. Install FFmpeg so ffprobe is available on PATH."
        ) from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        if SHARED_LIBRARY_MARKER in stderr:
            raise RuntimeError(
                f"ffprobe is installed but failed to start because required shared libraries are missing. {stderr}"
            ) from exc
        details = f" ffprobe stderr: {stderr}" if stderr else ""
        raise RuntimeError(f"ffprobe failed while probing media file: {video_path}.{details}") from exc

    try:
        return json.loads(completed.stdout)
    except json.JSONDecodeError as exc:
        raise RuntimeError("ffprobe returned invalid JSON output.") from exc


def _to_float(raw_value: Any) -> float | None:
    if raw_value in (None, "N/A", ""):
        return None
    return float(raw_value)


def _to_int(raw_value: Any) -> int | None:
    if raw_value in (None, "N/A", ""):
        return None
    return int(raw_value)
