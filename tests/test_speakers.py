from __future__ import annotations

import sys
from types import SimpleNamespace

import pytest

from autocut.features.speakers import _load_pyannote_pipeline, _resolve_torch_device, merge_speaker_turns
from autocut.models import SpeakerInterval


class _RecordingTorch:
    def __init__(self, cuda_available: bool):
        self.cuda = SimpleNamespace(is_available=lambda: cuda_available)

    def device(self, name: str) -> str:
        return f"device:{name}"


class _ModernPipeline:
    """Accepts only the ``token`` keyword, like recent pyannote releases."""

    calls: list[dict[str, object]] = []

    @classmethod
    def from_pretrained(cls, model: str, **kwargs: object):
        if "use_auth_token" in kwargs:
            raise TypeError("from_pretrained() got an unexpected keyword argument 'use_auth_token'")
        cls.calls.append({"model": model, **kwargs})
        return SimpleNamespace(model=model, kwargs=kwargs)


class _LegacyPipeline:
    @staticmethod
    def from_pretrained(model: str, use_auth_token: str | None = None):
        return SimpleNamespace(model=model, kwargs={"use_auth_token": use_auth_token})


class _BrokenPipeline:
    @staticmethod
    def from_pretrained(model: str, **kwargs: object):
        raise TypeError("checkpoint is corrupt")


def test_merge_speaker_turns_builds_ordered_tracks() -> None:
    turns = [
        ("SPEAKER_01", 5.0, 7.0),
        ("SPEAKER_00", 0.0, 2.0),
        ("SPEAKER_00", 1.5, 3.0),
        ("SPEAKER_00", 4.0, 5.0),
        ("SPEAKER_00", 3.0, 3.0),
    ]

    tracks = merge_speaker_turns(turns)

    assert [track.speaker_id for track in tracks] == ["SPEAKER_00", "SPEAKER_01"]
    assert tracks[0].intervals == (SpeakerInterval(0.0, 3.0), SpeakerInterval(4.0, 5.0))
    assert tracks[1].intervals == (SpeakerInterval(5.0, 7.0),)


def test_merge_speaker_turns_joins_touching_turns() -> None:
    tracks = merge_speaker_turns([("A", 2.0, 4.0), ("A", 0.0, 2.0)])

    assert tracks[0].intervals == (SpeakerInterval(0.0, 4.0),)


def test_merge_speaker_turns_without_turns() -> None:
    assert merge_speaker_turns([]) == []


@pytest.mark.parametrize(
    ("requested", "cuda_available", "expected"),
    [
        ("auto", True, "device:cuda"),
        (" AUTO ", False, "device:cpu"),
        ("cuda:1", False, "device:cuda:1"),
    ],
)
def test_resolve_torch_device(monkeypatch, requested: str, cuda_available: bool, expected: str) -> None:
    monkeypatch.setitem(sys.modules, "torch", _RecordingTorch(cuda_available))

    assert _resolve_torch_device(requested) == expected


def test_pipeline_loader_passes_legacy_auth_keyword() -> None:
    pipeline = _load_pyannote_pipeline(pipeline_class=_LegacyPipeline, pipeline_model="diar-model", hf_auth_token="hf_abc")

    assert pipeline.kwargs == {"use_auth_token": "hf_abc"}


def test_pipeline_loader_retries_with_token_keyword() -> None:
    _ModernPipeline.calls.clear()

    pipeline = _load_pyannote_pipeline(pipeline_class=_ModernPipeline, pipeline_model="diar-model", hf_auth_token="hf_abc")

    assert pipeline.kwargs == {"token": "hf_abc"}
    assert _ModernPipeline.calls == [{"model": "diar-model", "token": "hf_abc"}]


def test_pipeline_loader_without_token_passes_no_auth() -> None:
    pipeline = _load_pyannote_pipeline(pipeline_class=_ModernPipeline, pipeline_model="diar-model", hf_auth_token=None)

    assert pipeline.kwargs == {}


def test_pipeline_loader_keeps_unrelated_type_errors() -> None:
    with pytest.raises(TypeError, match="checkpoint is corrupt"):
        _load_pyannote_pipeline(pipeline_class=_BrokenPipeline, pipeline_model="diar-model", hf_auth_token="hf_abc")
