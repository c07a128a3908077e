from __future__ import annotations

import pytest

from autocut.models import NormalizedTimeline, Segment, TimePoint
from autocut.scoring.heuristic_score import score_segment, score_segments


def _timeline(energy: list[float], speech: set[int], scenes: set[int]) -> NormalizedTimeline:
    points = tuple(
        TimePoint(time=float(t), audio_energy=value, is_speech=t in speech, is_scene_change=t in scenes)
        for t, value in enumerate(energy)
    )
    return NormalizedTimeline(time_points=points, total_duration=float(len(energy) - 1))


def test_score_segment_uses_normalized_weighted_sum() -> None:
    timeline = _timeline([0.8] * 5, speech={0, 1}, scenes=set())
    segment = Segment(segment_id="s0", source_id="vid", start_time=0, end_time=4)

    details = score_segment(segment, timeline, weights={"audio_energy": 1.0, "speech_coverage": 1.0, "scene_activity": 0})

    assert details.feature_values == pytest.approx({"audio_energy": 0.8, "speech_coverage": 0.5, "scene_activity": 0.0})
    assert details.score == pytest.approx((0.8 * 0.5) + (0.5 * 0.5))
    assert details.reason_tags == ["signal:audio_energy"]


def test_scene_activity_saturates_at_one_change_per_five_seconds() -> None:
    timeline = _timeline([0.0] * 11, speech=set(), scenes={2, 7})
    segment = Segment(segment_id="s0", source_id="vid", start_time=0, end_time=10)

    details = score_segment(segment, timeline, weights={"scene_activity": 1.0})

    assert details.feature_values["scene_activity"] == pytest.approx(1.0)
    assert details.score == pytest.approx(1.0)


def test_reason_tags_fall_back_to_top_contributions() -> None:
    timeline = _timeline([0.3] * 4, speech={1}, scenes=set())
    segment = Segment(segment_id="s0", source_id="vid", start_time=0, end_time=3)

    details = score_segment(segment, timeline, reason_threshold=0.9)

    assert details.reason_tags == ["signal:audio_energy", "signal:speech_coverage"]


def test_segment_without_timeline_points_scores_zero() -> None:
    timeline = _timeline([1.0] * 3, speech={0, 1, 2}, scenes=set())
    segment = Segment(segment_id="late", source_id="vid", start_time=50, end_time=55)

    details = score_segment(segment, timeline)

    assert details.score == 0.0
    assert details.reason_tags == []


def test_score_segments_preserves_identity_fields_and_order() -> None:
    timeline = _timeline([0.9] * 9, speech=set(range(9)), scenes={0})
    segments = [
        Segment(segment_id="vid_seg_0000", source_id="vid", start_time=0, end_time=4),
        Segment(segment_id="vid_seg_0001", source_id="vid", start_time=4, end_time=8),
    ]

    scored = score_segments(segments, timeline)

    assert [item.segment_id for item in scored] == ["vid_seg_0000", "vid_seg_0001"]
    assert [(item.start_time, item.end_time) for item in scored] == [(0, 4), (4, 8)]
    assert all(0.0 <= item.score <= 1.0 for item in scored)
    assert scored[0].score > scored[1].score
    assert scored[0].reason is not None and "signal:audio_energy" in scored[0].reason


def test_negative_weights_are_ignored() -> None:
    timeline = _timeline([0.6] * 3, speech=set(), scenes=set())
    segment = Segment(segment_id="s0", source_id="vid", start_time=0, end_time=2)

    details = score_segment(segment, timeline, weights={"audio_energy": 1.0, "speech_coverage": -3.0})

    assert details.score == pytest.approx(0.6)
