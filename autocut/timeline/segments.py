from __future__ import annotations

import math

from autocut.errors import ConfigurationError
from autocut.models import NormalizedTimeline, Segment


def build_segments(
    timeline: NormalizedTimeline,
    source_id: str,
    *,
    min_segment_seconds: float = 2.0,
    max_segment_seconds: float = 10.0,
    silence_threshold: float = 0.1,
) -> list[Segment]:
    """Cut a normalized timeline into candidate segments.

    Pipeline:
    1) find cut points at silences and scene changes, at least ``min_segment_seconds`` apart
    2) close the last segment at the timeline end, folding a too-short tail into its predecessor
    3) split anything longer than ``max_segment_seconds`` into equal chunks
    """

    if min_segment_seconds <= 0:
        raise ConfigurationError("min_segment_seconds must be positive.")
    if max_segment_seconds < min_segment_seconds:
        raise ConfigurationError("max_segment_seconds must be >= min_segment_seconds.")

    cut_points = _find_cut_points(
        timeline,
        min_segment_seconds=min_segment_seconds,
        silence_threshold=silence_threshold,
    )
    return _assemble_segments(cut_points, source_id=source_id, max_segment_seconds=max_segment_seconds)


def _find_cut_points(
    timeline: NormalizedTimeline,
    *,
    min_segment_seconds: float,
    silence_threshold: float,
) -> list[float]:
    if timeline.total_duration <= 0:
        return []

    cut_points = [0.0]
    last_cut = 0.0
    for point in timeline.time_points[1:]:
        if point.time >= timeline.total_duration:
            break
        if point.time - last_cut < min_segment_seconds:
            continue
        if point.audio_energy < silence_threshold or point.is_scene_change:
            cut_points.append(point.time)
            last_cut = point.time

    remaining = timeline.total_duration - last_cut
    if remaining < min_segment_seconds and len(cut_points) > 1:
        cut_points.pop()
    cut_points.append(timeline.total_duration)
    return cut_points


def _assemble_segments(cut_points: list[float], *, source_id: str, max_segment_seconds: float) -> list[Segment]:
    segments: list[Segment] = []

    for start, end in zip(cut_points, cut_points[1:]):
        duration = end - start
        if duration <= 0:
            continue

        chunk_count = max(1, math.ceil(duration / max_segment_seconds))
        chunk_duration = duration / chunk_count
        for chunk in range(chunk_count):
            chunk_start = start + chunk * chunk_duration
            chunk_end = end if chunk == chunk_count - 1 else start + (chunk + 1) * chunk_duration
            segments.append(
                Segment(
                    segment_id=f"{source_id}_seg_{len(segments):04d}",
                    source_id=source_id,
                    start_time=round(chunk_start, 3),
                    end_time=round(chunk_end, 3),
                )
            )

    return segments
