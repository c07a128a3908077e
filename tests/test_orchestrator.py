from __future__ import annotations

import asyncio
import threading

import pytest

from autocut.errors import ExtractionError
from autocut.extract.orchestrator import extract_signals, extract_signals_sync, signal_extent
from autocut.models import (
    AudioSignals,
    SpeakerInterval,
    SpeakerTrack,
    TranscriptEntry,
    VideoInput,
    VideoSignals,
)

VIDEO = VideoInput(video_id="clip-1", file_path="/tmp/clip-1.mp4")


def _audio() -> AudioSignals:
    return AudioSignals(
        timestamps=(0.0, 1.0, 2.0),
        energy=(0.2, 0.9, 0.4),
        transcription=(TranscriptEntry(text="hello there", start_time=0.2, end_time=2.6),),
        speakers=(SpeakerTrack(speaker_id="SPEAKER_00", intervals=(SpeakerInterval(0.0, 2.4),)),),
    )


def _video() -> VideoSignals:
    return VideoSignals(scene_changes=(0.0, 1.5, 3.0), visual_types=("static", "high_motion"))


def test_merges_results_of_blocking_extractors() -> None:
    signals = extract_signals_sync(
        VIDEO,
        audio_extractor=lambda _item: _audio(),
        video_extractor=lambda _item: _video(),
    )

    assert signals.audio == _audio()
    assert signals.video == _video()
    assert signals.duration == pytest.approx(3.0)


def test_async_extractors_run_concurrently() -> None:
    async def scenario():
        video_started = asyncio.Event()

        async def audio_extractor(_item: VideoInput) -> AudioSignals:
            # only completes if the video branch is already running
            await video_started.wait()
            return _audio()

        async def video_extractor(_item: VideoInput) -> VideoSignals:
            video_started.set()
            return _video()

        return await asyncio.wait_for(
            extract_signals(VIDEO, audio_extractor=audio_extractor, video_extractor=video_extractor),
            timeout=5,
        )

    signals = asyncio.run(scenario())

    assert signals.video.visual_types == ("static", "high_motion")


def test_failure_cancels_sibling_and_returns_no_partial_result() -> None:
    sibling_cancelled = False

    async def audio_extractor(_item: VideoInput) -> AudioSignals:
        await asyncio.sleep(0)
        raise RuntimeError("decoder crashed")

    async def video_extractor(_item: VideoInput) -> VideoSignals:
        nonlocal sibling_cancelled
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            sibling_cancelled = True
            raise
        return _video()

    with pytest.raises(ExtractionError, match="decoder crashed") as exc_info:
        asyncio.run(extract_signals(VIDEO, audio_extractor=audio_extractor, video_extractor=video_extractor))

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert sibling_cancelled is True


def test_blocking_extractor_failure_is_wrapped() -> None:
    def video_extractor(_item: VideoInput) -> VideoSignals:
        raise ValueError("unreadable frames")

    with pytest.raises(ExtractionError, match="clip-1: unreadable frames"):
        extract_signals_sync(VIDEO, audio_extractor=lambda _item: _audio(), video_extractor=video_extractor)


def test_wrong_result_type_is_an_extraction_error() -> None:
    with pytest.raises(ExtractionError, match="video extractor returned dict, expected VideoSignals"):
        extract_signals_sync(VIDEO, audio_extractor=lambda _item: _audio(), video_extractor=lambda _item: {})


def test_duration_resolver_takes_precedence() -> None:
    seen: list[str] = []

    def resolver(item: VideoInput) -> float:
        seen.append(item.file_path)
        return 42.5

    signals = extract_signals_sync(
        VIDEO,
        audio_extractor=lambda _item: _audio(),
        video_extractor=lambda _item: _video(),
        duration_resolver=resolver,
    )

    assert seen == [VIDEO.file_path]
    assert signals.duration == 42.5


def test_duration_resolver_runs_off_the_event_loop_thread() -> None:
    loop_threads: list[bool] = []

    def resolver(_item: VideoInput) -> float:
        loop_threads.append(threading.current_thread() is threading.main_thread())
        return 12.0

    signals = extract_signals_sync(
        VIDEO,
        audio_extractor=lambda _item: _audio(),
        video_extractor=lambda _item: _video(),
        duration_resolver=resolver,
    )

    assert loop_threads == [False]
    assert signals.duration == 12.0


def test_non_positive_duration_is_an_extraction_error() -> None:
    with pytest.raises(ExtractionError, match="Could not determine duration"):
        extract_signals_sync(
            VIDEO,
            audio_extractor=lambda _item: AudioSignals(),
            video_extractor=lambda _item: VideoSignals(),
        )


def test_resolver_failure_is_an_extraction_error() -> None:
    def resolver(_item: VideoInput) -> float:
        raise RuntimeError("ffprobe missing")

    with pytest.raises(ExtractionError, match="ffprobe missing"):
        extract_signals_sync(
            VIDEO,
            audio_extractor=lambda _item: _audio(),
            video_extractor=lambda _item: _video(),
            duration_resolver=resolver,
        )


def test_signal_extent_uses_latest_reference_across_signals() -> None:
    audio = _audio()

    assert signal_extent(audio, VideoSignals()) == pytest.approx(2.6)
    assert signal_extent(audio, _video()) == pytest.approx(3.0)
    assert signal_extent(AudioSignals(), VideoSignals()) == 0.0
