from __future__ import annotations

from pathlib import Path
from typing import Any

from autocut.models import VideoSignals

STATIC_MOTION_CEILING = 0.02
HIGH_MOTION_FLOOR = 0.08


def detect_scenes(
    video_path: str | Path,
    analysis_fps: float = 2.0,
    processing_width: int = 320,
    scene_change_multiplier: float = 2.5,
    min_scene_seconds: float = 1.0,
) -> VideoSignals:
    """Detect scene boundaries with low-FPS frame differencing and label each scene by motion."""

    source_path = Path(video_path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Video file not found: {source_path}")

    import cv2
    import numpy as np

    capture = cv2.VideoCapture(str(source_path))
    if not capture.isOpened():
        raise RuntimeError(f"Unable to open video for scene analysis: {source_path}")

    native_fps = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)
    if native_fps <= 0:
        native_fps = max(analysis_fps, 1.0)
    frame_interval = max(int(round(native_fps / max(analysis_fps, 0.1))), 1)

    samples: list[tuple[float, float]] = []
    prev_gray = None
    frame_index = 0

    try:
        frame_count = float(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0.0)
        while True:
            ok, frame = capture.read()
            if not ok:
                break

            if frame_index % frame_interval != 0:
                frame_index += 1
                continue

            timestamp_seconds = float(capture.get(cv2.CAP_PROP_POS_MSEC) / 1000.0)
            resized = _resize_for_motion(frame=frame, processing_width=processing_width, cv2_module=cv2)
            gray = cv2.cvtColor(resized, cv2.COLOR_BGR2GRAY)

            if prev_gray is None:
                motion_score = 0.0
            else:
                motion_score = float(np.mean(cv2.absdiff(gray, prev_gray)) / 255.0)

            samples.append((round(timestamp_seconds, 3), round(motion_score, 6)))
            prev_gray = gray
            frame_index += 1
    finally:
        capture.release()

    motion_values = [motion for _, motion in samples]
    threshold = float(np.mean(motion_values) + scene_change_multiplier * np.std(motion_values)) if motion_values else 0.0
    sample_based = samples[-1][0] if samples else 0.0
    duration_seconds = max(sample_based, frame_count / native_fps)

    return build_video_signals(
        samples,
        duration_seconds=duration_seconds,
        threshold=threshold,
        min_scene_seconds=min_scene_seconds,
    )


def build_video_signals(
    samples: list[tuple[float, float]],
    *,
    duration_seconds: float,
    threshold: float,
    min_scene_seconds: float = 1.0,
) -> VideoSignals:
    """Turn ``(timestamp, motion)`` samples into scene boundaries plus one label per scene.

    Boundaries always start at 0 and end at ``duration_seconds``; an interior boundary is
    a sample whose motion reaches ``threshold`` and sits at least ``min_scene_seconds``
    after the previous boundary and before the end.
    """

    end_of_range = round(duration_seconds, 3)
    if end_of_range <= 0:
        return VideoSignals()

    boundaries = [0.0]
    for timestamp, motion in samples:
        if motion <= 0 or motion < threshold:
            continue
        if timestamp <= boundaries[-1] or timestamp - boundaries[-1] < min_scene_seconds:
            continue
        if end_of_range - timestamp < max(min_scene_seconds, 0.001):
            continue
        boundaries.append(timestamp)
    boundaries.append(end_of_range)

    labels: list[str] = []
    for start, end in zip(boundaries, boundaries[1:]):
        # the boundary sample itself carries the cut's spike, so it is excluded
        in_scene = [motion for timestamp, motion in samples if start < timestamp < end]
        labels.append(_label_motion(sum(in_scene) / len(in_scene) if in_scene else 0.0))

    return VideoSignals(scene_changes=tuple(boundaries), visual_types=tuple(labels))


def _label_motion(mean_motion: float) -> str:
    if mean_motion < STATIC_MOTION_CEILING:
        return "static"
    if mean_motion < HIGH_MOTION_FLOOR:
        return "moderate_motion"
    return "high_motion"


def _resize_for_motion(*, frame: Any, processing_width: int, cv2_module: Any) -> Any:
    if processing_width <= 0:
        return frame

    height, width = frame.shape[:2]
    if width <= processing_width:
        return frame

    target_height = max(int(round(height * processing_width / width)), 1)
    return cv2_module.resize(frame, (processing_width, target_height), interpolation=cv2_module.INTER_AREA)
