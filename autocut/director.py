from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

from autocut.config import ProcessingOptions
from autocut.errors import ConfigurationError
from autocut.models import ScoredSegment

MIN_SCORE_THRESHOLD = 0.5

logger = logging.getLogger(__name__)


def select_and_order(
    segments: Sequence[ScoredSegment],
    options: ProcessingOptions | None = None,
    *,
    log: logging.Logger | None = None,
) -> list[ScoredSegment]:
    """Pick the best segments that fit the target duration, in timeline order.

    Pipeline:
    1) drop segments scoring below ``MIN_SCORE_THRESHOLD`` (ties with the threshold stay)
    2) greedy fill by descending score (stable), skipping segments that would overflow
    3) reorder the accepted set with ``timeline_order_key``

    Raises ``ConfigurationError`` for a non-positive target duration before any selection.
    """

    active_logger = log or logger
    target_duration = validate_target_duration(options)

    candidates = [segment for segment in segments if segment.score >= MIN_SCORE_THRESHOLD]
    active_logger.debug(
        "Quality filter kept %d of %d segments (threshold %.2f)",
        len(candidates),
        len(segments),
        MIN_SCORE_THRESHOLD,
    )
    if not candidates:
        return []

    selected = _select_within_budget(candidates, target_duration, active_logger)
    ordered = sorted(selected, key=timeline_order_key)

    active_logger.info(
        "Director selected %d segments totalling %.2fs of %.2fs target",
        len(ordered),
        total_duration(ordered),
        target_duration,
    )
    return ordered


def validate_target_duration(options: ProcessingOptions | None) -> float:
    resolved = options or ProcessingOptions()
    target_duration = float(resolved.target_duration)
    if not math.isfinite(target_duration) or target_duration <= 0:
        raise ConfigurationError(f"target_duration must be a positive number of seconds, got {resolved.target_duration}.")
    return target_duration


def timeline_order_key(segment: ScoredSegment) -> tuple[str, float, float]:
    """Ordering shared by the director and the plan builder: source, then time within source."""

    return (segment.source_id, segment.start_time, segment.end_time)


def total_duration(segments: Iterable[ScoredSegment]) -> float:
    # order-independent, correctly rounded
    return math.fsum(segment.duration for segment in segments)


def _select_within_budget(
    candidates: list[ScoredSegment],
    target_duration: float,
    active_logger: logging.Logger,
) -> list[ScoredSegment]:
    # sorted() is stable, so equal scores keep their input order
    ranked = sorted(candidates, key=lambda segment: -segment.score)

    selected: list[ScoredSegment] = []
    accumulated = 0.0
    for segment in ranked:
        candidate_total = total_duration([*selected, segment])
        if candidate_total <= target_duration:
            selected.append(segment)
            accumulated = candidate_total
            active_logger.debug(
                "Accepted %s (score %.3f, %.2fs); accumulated %.2fs",
                segment.segment_id,
                segment.score,
                segment.duration,
                accumulated,
            )
        else:
            active_logger.debug(
                "Skipped %s (%.2fs): would exceed %.2fs target",
                segment.segment_id,
                segment.duration,
                target_duration,
            )

        if accumulated >= target_duration:
            break

    return selected
