from __future__ import annotations

import csv
import json
from collections.abc import Sequence
from dataclasses import asdict
from pathlib import Path
from typing import Any

from autocut.models import Clip, EditPlan, PlanMetadata, Resolution, ScoredSegment, SignalData, Transition


def plan_to_payload(plan: EditPlan) -> dict[str, Any]:
    """Serialize a plan with the field names the renderer reads."""

    return {
        "planId": plan.plan_id,
        "generatedAt": plan.generated_at,
        "clips": [
            {
                "id": clip.clip_id,
                "sourceId": clip.source_id,
                "sourceStartTime": clip.source_start,
                "sourceEndTime": clip.source_end,
                "targetStartTime": clip.target_start,
                "duration": clip.duration,
                "volume": clip.volume,
            }
            for clip in plan.clips
        ],
        "transitions": [
            {
                "type": transition.type,
                "duration": transition.duration,
                "atTime": transition.at_time,
            }
            for transition in plan.transitions
        ],
        "metadata": {
            "totalDuration": plan.metadata.total_duration,
            "fps": plan.metadata.fps,
            "resolution": {
                "width": plan.metadata.resolution.width,
                "height": plan.metadata.resolution.height,
            },
        },
    }


def export_edit_plan(plan: EditPlan, output_path: str | Path) -> Path:
    """Export an edit plan to JSON (default) or a clip table CSV, based on file extension."""

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix.lower() == ".csv":
        _write_clips_csv(plan, path)
    else:
        path.write_text(json.dumps(plan_to_payload(plan), indent=2), encoding="utf-8")

    return path


def load_edit_plan(path: str | Path) -> EditPlan:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Edit plan must be a JSON object.")

    metadata = payload.get("metadata", {})
    resolution = metadata.get("resolution", {})
    return EditPlan(
        plan_id=str(payload["planId"]),
        generated_at=str(payload["generatedAt"]),
        clips=tuple(
            Clip(
                clip_id=str(row["id"]),
                source_id=str(row["sourceId"]),
                source_start=float(row["sourceStartTime"]),
                source_end=float(row["sourceEndTime"]),
                target_start=float(row["targetStartTime"]),
                duration=float(row["duration"]),
                volume=float(row.get("volume", 1.0)),
            )
            for row in payload.get("clips", [])
        ),
        transitions=tuple(
            Transition(type=str(row["type"]), duration=float(row["duration"]), at_time=float(row["atTime"]))
            for row in payload.get("transitions", [])
        ),
        metadata=PlanMetadata(
            total_duration=float(metadata["totalDuration"]),
            fps=int(metadata["fps"]),
            resolution=Resolution(width=int(resolution["width"]), height=int(resolution["height"])),
        ),
    )


def export_scored_segments(segments: Sequence[ScoredSegment], output_path: str | Path) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [
        {
            "segmentId": segment.segment_id,
            "sourceId": segment.source_id,
            "startTime": segment.start_time,
            "endTime": segment.end_time,
            "score": segment.score,
            "reason": segment.reason,
        }
        for segment in segments
    ]
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def load_scored_segments(path: str | Path) -> list[ScoredSegment]:
    """Load scored segments produced by an external scorer.

    Rows are validated on construction: a score outside [0, 1] or an empty time
    range raises ``ValueError`` naming the offending row.
    """

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError("Scored segments must be a JSON array.")

    segments: list[ScoredSegment] = []
    for idx, row in enumerate(payload, start=1):
        if not isinstance(row, dict):
            raise ValueError(f"Segment row {idx} must be an object.")
        try:
            segments.append(
                ScoredSegment(
                    segment_id=str(row.get("segmentId", f"seg_{idx:04d}")),
                    source_id=str(row["sourceId"]),
                    start_time=float(row["startTime"]),
                    end_time=float(row["endTime"]),
                    score=float(row["score"]),
                    reason=str(row["reason"]) if row.get("reason") is not None else None,
                )
            )
        except KeyError as exc:
            raise ValueError(f"Segment row {idx} is missing field {exc}.") from exc
        except ValueError as exc:
            raise ValueError(f"Segment row {idx} is invalid: {exc}") from exc

    return segments


def export_signal_data(signals: SignalData, output_path: str | Path) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(signals), indent=2, sort_keys=True), encoding="utf-8")
    return path


def _write_clips_csv(plan: EditPlan, path: Path) -> None:
    fields = [
        "clip_id",
        "source_id",
        "source_start",
        "source_end",
        "target_start",
        "target_end",
        "duration",
        "volume",
        "transition_after",
    ]
    transitions_at = {round(transition.at_time, 3): transition.type for transition in plan.transitions}

    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=fields)
        writer.writeheader()
        for clip in plan.clips:
            writer.writerow(
                {
                    "clip_id": clip.clip_id,
                    "source_id": clip.source_id,
                    "source_start": f"{clip.source_start:.3f}",
                    "source_end": f"{clip.source_end:.3f}",
                    "target_start": f"{clip.target_start:.3f}",
                    "target_end": f"{clip.target_end:.3f}",
                    "duration": f"{clip.duration:.3f}",
                    "volume": f"{clip.volume:.2f}",
                    "transition_after": transitions_at.get(round(clip.target_end, 3), ""),
                }
            )
