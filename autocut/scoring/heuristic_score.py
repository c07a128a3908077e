from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from autocut.models import NormalizedTimeline, ScoredSegment, Segment, TimePoint

DEFAULT_WEIGHTS = {
    "audio_energy": 0.4,
    "speech_coverage": 0.35,
    "scene_activity": 0.25,
}
SCENE_ACTIVITY_SECONDS_PER_CHANGE = 5.0


@dataclass(slots=True)
class SegmentScoreDetails:
    """Explainable output for deterministic segment scoring."""

    score: float
    reason_tags: list[str]
    weighted_contributions: dict[str, float]
    feature_values: dict[str, float]


def score_segments(
    segments: Sequence[Segment],
    timeline: NormalizedTimeline,
    weights: dict[str, float] | None = None,
) -> list[ScoredSegment]:
    """Attach a [0, 1] quality score and a short reason to every candidate segment."""

    scored: list[ScoredSegment] = []
    for segment in segments:
        details = score_segment(segment, timeline, weights=weights)
        scored.append(
            ScoredSegment(
                segment_id=segment.segment_id,
                source_id=segment.source_id,
                start_time=segment.start_time,
                end_time=segment.end_time,
                score=details.score,
                reason=", ".join(details.reason_tags) or None,
            )
        )
    return scored


def score_segment(
    segment: Segment,
    timeline: NormalizedTimeline,
    weights: dict[str, float] | None = None,
    *,
    reason_threshold: float = 0.55,
    max_reason_tags: int = 3,
) -> SegmentScoreDetails:
    resolved_weights = _resolve_weights(weights)
    if not resolved_weights:
        return SegmentScoreDetails(score=0.0, reason_tags=[], weighted_contributions={}, feature_values={})

    points = [point for point in timeline.time_points if segment.start_time <= point.time < segment.end_time]
    features = _segment_features(points, segment.duration)

    feature_values: dict[str, float] = {}
    weighted_contributions: dict[str, float] = {}
    for key, weight in resolved_weights.items():
        value = _clamp(features.get(key, 0.0))
        feature_values[key] = value
        weighted_contributions[key] = value * weight

    return SegmentScoreDetails(
        score=_clamp(sum(weighted_contributions.values())),
        reason_tags=_generate_reason_tags(
            feature_values=feature_values,
            weighted_contributions=weighted_contributions,
            reason_threshold=reason_threshold,
            max_reason_tags=max_reason_tags,
        ),
        weighted_contributions=weighted_contributions,
        feature_values=feature_values,
    )


def _segment_features(points: list[TimePoint], duration: float) -> dict[str, float]:
    if not points:
        return {}

    scene_changes = sum(1 for point in points if point.is_scene_change)
    expected_changes = max(duration / SCENE_ACTIVITY_SECONDS_PER_CHANGE, 1.0)
    return {
        "audio_energy": sum(point.audio_energy for point in points) / len(points),
        "speech_coverage": sum(1 for point in points if point.is_speech) / len(points),
        "scene_activity": min(scene_changes / expected_changes, 1.0),
    }


def _resolve_weights(weights: dict[str, float] | None) -> dict[str, float]:
    clipped = {name: max(0.0, value) for name, value in (weights or DEFAULT_WEIGHTS).items()}
    total = sum(clipped.values())
    if total == 0:
        return {}
    return {name: value / total for name, value in clipped.items()}


def _generate_reason_tags(
    *,
    feature_values: dict[str, float],
    weighted_contributions: dict[str, float],
    reason_threshold: float,
    max_reason_tags: int,
) -> list[str]:
    if max_reason_tags <= 0:
        return []

    # strong features first; otherwise whatever contributed at all
    threshold = _clamp(reason_threshold)
    names = [name for name, value in feature_values.items() if value >= threshold]
    if not names:
        names = [name for name, contribution in weighted_contributions.items() if contribution > 0]

    names.sort(key=lambda name: (-weighted_contributions.get(name, 0.0), name))
    return [f"signal:{name}" for name in names[:max_reason_tags]]


def _clamp(value: float, minimum: float = 0.0, maximum: float = 1.0) -> float:
    return max(minimum, min(maximum, value))
