from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from autocut.config import ProcessingOptions
from autocut.director import timeline_order_key, total_duration
from autocut.models import Clip, EditPlan, PlanMetadata, Resolution, ScoredSegment, Transition

DEFAULT_FPS = 30
DEFAULT_RESOLUTION = Resolution(width=1920, height=1080)
DEFAULT_VOLUME = 1.0
FADE_DURATION_SECONDS = 0.5
FADE_MOODS = frozenset({"calm"})

IdFactory = Callable[[str], str]
Clock = Callable[[], datetime]

logger = logging.getLogger(__name__)


class SequentialIdFactory:
    """Deterministic ids: ``<prefix>_0001``, ``<prefix>_0002``, ... counted per prefix."""

    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)

    def __call__(self, prefix: str) -> str:
        self._counters[prefix] += 1
        return f"{prefix}_{self._counters[prefix]:04d}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_edit_plan(
    segments: Sequence[ScoredSegment],
    options: ProcessingOptions | None = None,
    *,
    id_factory: IdFactory | None = None,
    clock: Clock | None = None,
    log: logging.Logger | None = None,
) -> EditPlan:
    """Convert ordered segments into clips on an output timeline plus transitions and metadata.

    Clips are laid end to end starting at 0. Between consecutive clips a transition is
    chosen from the mood; zero-length cuts are implied and never recorded. Output is a
    pure function of the arguments once ``id_factory`` and ``clock`` are fixed.
    """

    active_logger = log or logger
    resolved_options = options or ProcessingOptions()
    next_id = id_factory or SequentialIdFactory()
    now = clock or utc_now

    ordered = sorted(segments, key=timeline_order_key)
    transition_type, transition_duration = _transition_for_mood(resolved_options.mood)

    clips: list[Clip] = []
    transitions: list[Transition] = []
    cursor = 0.0

    for index, segment in enumerate(ordered):
        duration = segment.duration
        clips.append(
            Clip(
                clip_id=next_id("clip"),
                source_id=segment.source_id,
                source_start=segment.start_time,
                source_end=segment.end_time,
                target_start=cursor,
                duration=duration,
                volume=DEFAULT_VOLUME,
            )
        )
        cursor = total_duration(ordered[: index + 1])

        is_last = index == len(ordered) - 1
        if not is_last and transition_duration > 0:
            transitions.append(Transition(type=transition_type, duration=transition_duration, at_time=cursor))

    plan = EditPlan(
        plan_id=next_id("plan"),
        generated_at=now().isoformat(),
        clips=tuple(clips),
        transitions=tuple(transitions),
        metadata=PlanMetadata(total_duration=cursor, fps=DEFAULT_FPS, resolution=DEFAULT_RESOLUTION),
    )

    active_logger.info(
        "Built edit plan %s: %d clips, %d transitions (%s), %.2fs",
        plan.plan_id,
        len(plan.clips),
        len(plan.transitions),
        transition_type,
        cursor,
    )
    return plan


def _transition_for_mood(mood: str) -> tuple[str, float]:
    if mood in FADE_MOODS:
        return "fade", FADE_DURATION_SECONDS
    return "cut", 0.0
