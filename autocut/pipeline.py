from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass
from functools import partial

from autocut.config import ProcessingOptions, Settings
from autocut.director import select_and_order, validate_target_duration
from autocut.extract.extractors import extract_audio_signals, extract_video_signals
from autocut.extract.orchestrator import AudioExtractor, DurationResolver, VideoExtractor, extract_signals
from autocut.ingest.probe import probe_duration_seconds
from autocut.models import EditPlan, ScoredSegment, SignalData, VideoInput
from autocut.plan.builder import Clock, IdFactory, build_edit_plan
from autocut.scoring.heuristic_score import score_segments
from autocut.timeline.normalize import normalize_signals
from autocut.timeline.segments import build_segments

PIPELINE_STAGES = (
    "Extract signals",
    "Score candidate segments",
    "Select and order segments",
    "Build edit plan",
)

# called with (1-based stage index, stage label); the returned context wraps the stage
StageHook = Callable[[int, str], AbstractContextManager[object]]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PipelineResult:
    """Artifacts of one run, from signal bundle to edit plan."""

    signals: SignalData
    candidates: list[ScoredSegment]
    selected: list[ScoredSegment]
    plan: EditPlan


def default_extractors(settings: Settings) -> tuple[AudioExtractor, VideoExtractor]:
    audio_extractor = partial(
        extract_audio_signals,
        settings=settings.analysis,
        cache_dir=settings.pipeline.cache_dir,
    )
    video_extractor = partial(extract_video_signals, settings=settings.analysis)
    return audio_extractor, video_extractor


def probe_duration(video_input: VideoInput) -> float:
    """Container duration from ffprobe; the duration resolver used for real media files."""

    return probe_duration_seconds(video_input.file_path)


def build_candidates(signals: SignalData, source_id: str, settings: Settings) -> list[ScoredSegment]:
    """Normalize signals, cut them into candidate segments and score each one."""

    timeline = normalize_signals(signals, step_seconds=settings.segments.step_seconds)
    segments = build_segments(
        timeline,
        source_id,
        min_segment_seconds=settings.segments.min_segment_seconds,
        max_segment_seconds=settings.segments.max_segment_seconds,
        silence_threshold=settings.segments.silence_threshold,
    )
    return score_segments(segments, timeline, weights=settings.weights.model_dump(mode="python"))


async def process_video(
    video_input: VideoInput,
    settings: Settings,
    *,
    options: ProcessingOptions | None = None,
    audio_extractor: AudioExtractor | None = None,
    video_extractor: VideoExtractor | None = None,
    duration_resolver: DurationResolver | None = None,
    id_factory: IdFactory | None = None,
    clock: Clock | None = None,
    stage_hook: StageHook | None = None,
    log: logging.Logger | None = None,
) -> PipelineResult:
    """Run extraction, candidate scoring, director selection and plan building for one video.

    Without ``duration_resolver`` the duration is the latest time any signal references;
    pass ``probe_duration`` to use the container duration instead.
    """

    active_logger = log or logger
    resolved_options = options or settings.processing_options()

    # reject bad configuration before paying for extraction
    validate_target_duration(resolved_options)

    def _stage(index: int) -> AbstractContextManager[object]:
        return stage_hook(index, PIPELINE_STAGES[index - 1]) if stage_hook else nullcontext()

    default_audio, default_video = default_extractors(settings)
    with _stage(1):
        signals = await extract_signals(
            video_input,
            audio_extractor=audio_extractor or default_audio,
            video_extractor=video_extractor or default_video,
            duration_resolver=duration_resolver,
            log=active_logger,
        )

    with _stage(2):
        candidates = build_candidates(signals, video_input.video_id, settings)
    active_logger.info("Scored %d candidate segments for %s", len(candidates), video_input.video_id)

    with _stage(3):
        selected = select_and_order(candidates, resolved_options, log=active_logger)
    if not selected:
        active_logger.warning("No segments met the quality threshold for %s", video_input.video_id)

    with _stage(4):
        plan = build_edit_plan(selected, resolved_options, id_factory=id_factory, clock=clock, log=active_logger)
    return PipelineResult(signals=signals, candidates=candidates, selected=selected, plan=plan)
