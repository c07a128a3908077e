from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from time import perf_counter

import typer

from autocut.config import Settings, load_settings
from autocut.director import select_and_order, total_duration
from autocut.extract.orchestrator import extract_signals_sync
from autocut.logging_config import configure_logging
from autocut.models import VideoInput
from autocut.pipeline import PIPELINE_STAGES, default_extractors, probe_duration, process_video
from autocut.plan.builder import build_edit_plan
from autocut.plan.exporter import (
    export_edit_plan,
    export_scored_segments,
    export_signal_data,
    load_scored_segments,
)

app = typer.Typer(help="Automatic short-edit planner: signals -> director -> edit plan.")
config_app = typer.Typer(help="Configuration commands.")
extract_app = typer.Typer(help="Signal extraction commands.")
segments_app = typer.Typer(help="Segment selection commands.")
plan_app = typer.Typer(help="Edit plan commands.")

app.add_typer(config_app, name="config")
app.add_typer(extract_app, name="extract")
app.add_typer(segments_app, name="segments")
app.add_typer(plan_app, name="plan")

logger = logging.getLogger(__name__)

HANDLED_ERRORS = (RuntimeError, ValueError, FileNotFoundError)
NO_SELECTION_NOTICE = "No segments met the quality threshold; the edit plan is empty."

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    envvar="AUTOCUT_CONFIG",
    help="Path to YAML configuration file (defaults to configs/default.yaml when present).",
)


@contextmanager
def _progress(step_index: int, total_steps: int, label: str) -> Iterator[None]:
    typer.echo(f"[{step_index}/{total_steps}] {label}...", err=True)
    started_at = perf_counter()
    try:
        yield
    except Exception:
        elapsed = perf_counter() - started_at
        typer.echo(f"[{step_index}/{total_steps}] {label} failed after {elapsed:.1f}s", err=True)
        raise
    elapsed = perf_counter() - started_at
    typer.echo(f"[{step_index}/{total_steps}] {label} done in {elapsed:.1f}s", err=True)


def _bootstrap(config_path: Path | None) -> Settings:
    settings = load_settings(config_path)
    configure_logging(settings.logging)
    logger.debug("Loaded runtime settings from %s", config_path or "defaults")
    return settings


def _fail(exc: Exception) -> typer.Exit:
    logger.error("Command failed: %s", exc)
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(code=1)


def _video_input(video_path: str, video_id: str | None) -> VideoInput:
    resolved = Path(video_path).expanduser().resolve()
    if not resolved.exists():
        raise FileNotFoundError(f"Video file not found: {resolved}")
    return VideoInput(video_id=video_id or resolved.stem, file_path=str(resolved))


@config_app.command("show")
def show_config(config_path: Path | None = CONFIG_OPTION) -> None:
    """Print resolved runtime configuration."""

    try:
        settings = _bootstrap(config_path)
    except HANDLED_ERRORS as exc:
        raise _fail(exc) from exc
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))


@extract_app.command("signals")
def extract_signals_command(
    video_path: str,
    video_id: str | None = typer.Option(None, help="Optional video id. Defaults to source filename stem."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the signal bundle JSON here."),
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Run audio and video analysis concurrently and print or save the signal bundle."""

    try:
        settings = _bootstrap(config_path)
        video_input = _video_input(video_path, video_id)
        audio_extractor, video_extractor = default_extractors(settings)
        signals = extract_signals_sync(
            video_input,
            audio_extractor=audio_extractor,
            video_extractor=video_extractor,
            duration_resolver=probe_duration,
        )
    except HANDLED_ERRORS as exc:
        raise _fail(exc) from exc

    output_path = output or Path(settings.pipeline.output_dir) / f"{video_input.video_id}_signals.json"
    export_signal_data(signals, output_path)
    typer.echo(
        json.dumps(
            {
                "video_id": video_input.video_id,
                "duration": signals.duration,
                "audio_points": len(signals.audio.timestamps),
                "transcript_entries": len(signals.audio.transcription),
                "speakers": len(signals.audio.speakers),
                "scene_boundaries": len(signals.video.scene_changes),
                "signals_path": str(output_path),
            },
            indent=2,
        )
    )


@segments_app.command("select")
def select_segments(
    segments_path: Path = typer.Argument(..., help="Path to scored segments JSON."),
    target_duration: float | None = typer.Option(None, help="Target edit duration in seconds."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the selected segments JSON here."),
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Apply director logic (threshold, greedy duration fill, timeline order) to scored segments."""

    try:
        settings = _bootstrap(config_path)
        options = settings.processing_options(target_duration=target_duration)
        segments = load_scored_segments(segments_path)
        selected = select_and_order(segments, options)
    except HANDLED_ERRORS as exc:
        raise _fail(exc) from exc

    if not selected:
        typer.echo(NO_SELECTION_NOTICE, err=True)

    output_path = output or segments_path.with_name(f"{segments_path.stem}_selected.json")
    export_scored_segments(selected, output_path)
    typer.echo(
        json.dumps(
            {
                "input_count": len(segments),
                "selected_count": len(selected),
                "selected_duration": total_duration(selected),
                "target_duration": options.target_duration,
                "output_path": str(output_path),
            },
            indent=2,
        )
    )


@plan_app.command("build")
def build_plan(
    segments_path: Path = typer.Argument(..., help="Path to ordered segments JSON."),
    mood: str | None = typer.Option(None, help="Mood; 'calm' inserts fades between clips."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Plan path (.json or .csv)."),
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Build an edit plan from already-selected segments."""

    try:
        settings = _bootstrap(config_path)
        options = settings.processing_options(mood=mood)
        segments = load_scored_segments(segments_path)
        plan = build_edit_plan(segments, options)
    except HANDLED_ERRORS as exc:
        raise _fail(exc) from exc

    output_path = output or segments_path.with_name(f"{segments_path.stem}_plan.json")
    export_edit_plan(plan, output_path)
    typer.echo(
        json.dumps(
            {
                "plan_id": plan.plan_id,
                "clip_count": len(plan.clips),
                "transition_count": len(plan.transitions),
                "total_duration": plan.metadata.total_duration,
                "plan_path": str(output_path),
            },
            indent=2,
        )
    )


@app.command("run")
def run_pipeline(
    video_path: str,
    video_id: str | None = typer.Option(None, help="Optional video id. Defaults to source filename stem."),
    target_duration: float | None = typer.Option(None, help="Target edit duration in seconds."),
    mood: str | None = typer.Option(None, help="Mood; 'calm' inserts fades between clips."),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Directory for exported artifacts."),
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Run the complete pipeline from a video file to an exported edit plan."""

    total_steps = len(PIPELINE_STAGES) + 1

    try:
        settings = _bootstrap(config_path)
        options = settings.processing_options(target_duration=target_duration, mood=mood)
        video_input = _video_input(video_path, video_id)
        resolved_output_dir = output_dir or Path(settings.pipeline.output_dir)

        result = asyncio.run(
            process_video(
                video_input,
                settings,
                options=options,
                duration_resolver=probe_duration,
                stage_hook=lambda index, label: _progress(index, total_steps, label),
            )
        )

        with _progress(total_steps, total_steps, "Export outputs"):
            prefix = video_input.video_id
            exported = {
                "signals": export_signal_data(result.signals, resolved_output_dir / f"{prefix}_signals.json"),
                "candidates": export_scored_segments(
                    result.candidates, resolved_output_dir / f"{prefix}_candidates.json"
                ),
                "plan": export_edit_plan(result.plan, resolved_output_dir / f"{prefix}_plan.json"),
            }
    except HANDLED_ERRORS as exc:
        raise _fail(exc) from exc

    selected = result.selected
    plan = result.plan
    if not selected:
        typer.echo(NO_SELECTION_NOTICE, err=True)

    typer.echo(
        json.dumps(
            {
                "status": "ok" if selected else "empty",
                "video_id": video_input.video_id,
                "video_path": video_input.file_path,
                "candidate_count": len(result.candidates),
                "selected_count": len(selected),
                "plan_duration": plan.metadata.total_duration,
                "outputs": {key: str(path) for key, path in exported.items()},
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    app()
