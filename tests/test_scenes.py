from __future__ import annotations

import numpy as np
import pytest

from autocut.features.scenes import _resize_for_motion, build_video_signals, detect_scenes


class _FakeCv2:
    INTER_AREA = 3

    def __init__(self) -> None:
        self.called_with: tuple[tuple[int, int], int] | None = None

    def resize(self, frame, dims, interpolation):
        self.called_with = (dims, interpolation)
        target_w, target_h = dims
        return np.zeros((target_h, target_w, frame.shape[2]), dtype=frame.dtype)


def _samples() -> list[tuple[float, float]]:
    samples = [(0.0, 0.0)]
    samples += [(t / 2, 0.01) for t in range(1, 6)]
    samples.append((3.0, 0.5))
    samples += [(t / 2, 0.1) for t in range(7, 12)]
    return samples


def test_build_video_signals_cuts_on_motion_spike_and_labels_scenes() -> None:
    signals = build_video_signals(_samples(), duration_seconds=6.0, threshold=0.2)

    assert signals.scene_changes == (0.0, 3.0, 6.0)
    assert signals.visual_types == ("static", "high_motion")


def test_build_video_signals_ignores_spike_too_close_to_end() -> None:
    samples = [(t / 2, 0.03) for t in range(1, 11)] + [(5.5, 0.3)]

    signals = build_video_signals(samples, duration_seconds=6.0, threshold=0.2, min_scene_seconds=1.0)

    assert signals.scene_changes == (0.0, 6.0)
    assert signals.visual_types == ("moderate_motion",)


def test_build_video_signals_respects_minimum_scene_length() -> None:
    samples = [(1.0, 0.5), (1.4, 0.6), (3.0, 0.7)]

    signals = build_video_signals(samples, duration_seconds=5.0, threshold=0.2, min_scene_seconds=1.0)

    assert signals.scene_changes == (0.0, 1.0, 3.0, 5.0)
    assert len(signals.visual_types) == len(signals.scene_changes) - 1


def test_build_video_signals_empty_range() -> None:
    signals = build_video_signals([], duration_seconds=0.0, threshold=0.0)

    assert signals.scene_changes == ()
    assert signals.visual_types == ()


def test_detect_scenes_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        detect_scenes(tmp_path / "missing.mp4")


def test_resize_for_motion_skips_when_width_already_small() -> None:
    frame = np.zeros((100, 200, 3), dtype=np.uint8)
    fake_cv2 = _FakeCv2()

    resized = _resize_for_motion(frame=frame, processing_width=320, cv2_module=fake_cv2)

    assert resized is frame
    assert fake_cv2.called_with is None


def test_resize_for_motion_keeps_aspect_ratio() -> None:
    frame = np.zeros((100, 800, 3), dtype=np.uint8)
    fake_cv2 = _FakeCv2()

    resized = _resize_for_motion(frame=frame, processing_width=320, cv2_module=fake_cv2)

    assert resized.shape[:2] == (40, 320)
    assert fake_cv2.called_with == ((320, 40), _FakeCv2.INTER_AREA)


def test_resize_for_motion_disables_resize_for_non_positive_width() -> None:
    frame = np.zeros((100, 800, 3), dtype=np.uint8)
    fake_cv2 = _FakeCv2()

    resized = _resize_for_motion(frame=frame, processing_width=0, cv2_module=fake_cv2)

    assert resized is frame
    assert fake_cv2.called_with is None
