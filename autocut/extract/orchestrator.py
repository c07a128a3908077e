from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from autocut.errors import ExtractionError
from autocut.models import AudioSignals, SignalData, VideoInput, VideoSignals

T = TypeVar("T")

AudioExtractor = Callable[[VideoInput], AudioSignals | Awaitable[AudioSignals]]
VideoExtractor = Callable[[VideoInput], VideoSignals | Awaitable[VideoSignals]]
DurationResolver = Callable[[VideoInput], float]

logger = logging.getLogger(__name__)


async def extract_signals(
    video_input: VideoInput,
    *,
    audio_extractor: AudioExtractor,
    video_extractor: VideoExtractor,
    duration_resolver: DurationResolver | None = None,
    log: logging.Logger | None = None,
) -> SignalData:
    """Run audio and video extraction concurrently and merge them into one signal bundle.

    Both branches run inside a task group: the first failure cancels the sibling and is
    raised as ``ExtractionError``. Blocking extractors run in worker threads.
    """

    active_logger = log or logger
    active_logger.info("Extracting signals for %s", video_input.video_id)

    try:
        async with asyncio.TaskGroup() as group:
            audio_task = group.create_task(
                _run_extractor(audio_extractor, video_input, AudioSignals, "audio"),
                name=f"audio:{video_input.video_id}",
            )
            video_task = group.create_task(
                _run_extractor(video_extractor, video_input, VideoSignals, "video"),
                name=f"video:{video_input.video_id}",
            )
    except ExceptionGroup as failures:
        first = failures.exceptions[0]
        active_logger.error("Signal extraction failed for %s: %s", video_input.video_id, first)
        if isinstance(first, ExtractionError):
            raise first
        raise ExtractionError(f"Signal extraction failed for {video_input.video_id}: {first}") from first

    audio = audio_task.result()
    video = video_task.result()

    try:
        if duration_resolver is None:
            duration = signal_extent(audio, video)
        else:
            duration = await asyncio.to_thread(duration_resolver, video_input)
        signals = SignalData(audio=audio, video=video, duration=float(duration))
    except (RuntimeError, ValueError) as exc:
        raise ExtractionError(f"Could not determine duration for {video_input.video_id}: {exc}") from exc

    active_logger.info(
        "Extracted %d audio points and %d scene boundaries (%.2fs) for %s",
        len(audio.timestamps),
        len(video.scene_changes),
        signals.duration,
        video_input.video_id,
    )
    return signals


def extract_signals_sync(video_input: VideoInput, **kwargs: Any) -> SignalData:
    """Blocking wrapper around ``extract_signals`` for callers without an event loop."""

    return asyncio.run(extract_signals(video_input, **kwargs))


def signal_extent(audio: AudioSignals, video: VideoSignals) -> float:
    """Largest time referenced by any signal; used when no duration resolver is given."""

    candidates = [0.0]
    if audio.timestamps:
        candidates.append(audio.timestamps[-1])
    candidates.extend(entry.end_time for entry in audio.transcription)
    candidates.extend(track.intervals[-1].end for track in audio.speakers if track.intervals)
    if video.scene_changes:
        candidates.append(video.scene_changes[-1])
    return max(candidates)


async def _run_extractor(
    extractor: Callable[[VideoInput], Any],
    video_input: VideoInput,
    expected_type: type[T],
    label: str,
) -> T:
    if inspect.iscoroutinefunction(extractor):
        result = await extractor(video_input)
    else:
        result = await asyncio.to_thread(extractor, video_input)
        if inspect.isawaitable(result):
            result = await result

    if not isinstance(result, expected_type):
        raise ExtractionError(
            f"{label} extractor returned {type(result).__name__}, expected {expected_type.__name__}."
        )
    return result
