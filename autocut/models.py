from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class VideoInput:
    """One source video supplied by the caller."""

    video_id: str
    file_path: str


@dataclass(frozen=True, slots=True)
class TranscriptEntry:
    text: str
    start_time: float
    end_time: float

    def __post_init__(self) -> None:
        if self.start_time > self.end_time:
            raise ValueError(f"Transcript entry ends before it starts: {self.start_time} > {self.end_time}")


@dataclass(frozen=True, slots=True)
class SpeakerInterval:
    start: float
    end: float

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Speaker interval ends before it starts: {self.start} > {self.end}")


@dataclass(frozen=True, slots=True)
class SpeakerTrack:
    """All speaking intervals of one speaker, ordered and non-overlapping."""

    speaker_id: str
    intervals: tuple[SpeakerInterval, ...] = ()

    def __post_init__(self) -> None:
        for previous, current in zip(self.intervals, self.intervals[1:]):
            if current.start < previous.end:
                raise ValueError(f"Speaker {self.speaker_id} has overlapping or unordered intervals.")


@dataclass(frozen=True, slots=True)
class AudioSignals:
    """Audio analysis output: energy curve, transcript and speaker timeline."""

    timestamps: tuple[float, ...] = ()
    energy: tuple[float, ...] = ()
    transcription: tuple[TranscriptEntry, ...] = ()
    speakers: tuple[SpeakerTrack, ...] = ()

    def __post_init__(self) -> None:
        if len(self.timestamps) != len(self.energy):
            raise ValueError("Energy values must be parallel to timestamps.")
        for previous, current in zip(self.timestamps, self.timestamps[1:]):
            if current < previous:
                raise ValueError("Audio timestamps must be non-decreasing.")
        if any(not 0.0 <= value <= 1.0 for value in self.energy):
            raise ValueError("Energy values must be in [0, 1].")


@dataclass(frozen=True, slots=True)
class VideoSignals:
    """Scene boundaries plus one visual-type label per inter-boundary interval.

    ``scene_changes`` holds interval boundaries (first is the analyzed range
    start, last is its end), so ``len(visual_types) == len(scene_changes) - 1``.
    """

    scene_changes: tuple[float, ...] = ()
    visual_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for previous, current in zip(self.scene_changes, self.scene_changes[1:]):
            if current <= previous:
                raise ValueError("Scene changes must be strictly increasing.")
        expected_labels = max(len(self.scene_changes) - 1, 0)
        if len(self.visual_types) != expected_labels:
            raise ValueError(
                f"Expected {expected_labels} visual-type labels for {len(self.scene_changes)} scene boundaries, "
                f"got {len(self.visual_types)}."
            )


@dataclass(frozen=True, slots=True)
class SignalData:
    """Merged audio+video signal bundle for one source video."""

    audio: AudioSignals
    video: VideoSignals
    duration: float

    def __post_init__(self) -> None:
        if not self.duration > 0:
            raise ValueError(f"Signal duration must be positive, got {self.duration}.")


@dataclass(frozen=True, slots=True)
class Segment:
    """Unscored candidate time range on a source video."""

    segment_id: str
    source_id: str
    start_time: float
    end_time: float

    def __post_init__(self) -> None:
        if not self.end_time > self.start_time:
            raise ValueError(f"Segment {self.segment_id} must end after it starts.")

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True, slots=True)
class ScoredSegment:
    """Candidate time range carrying a quality score in [0, 1]."""

    segment_id: str
    source_id: str
    start_time: float
    end_time: float
    score: float
    reason: str | None = None

    def __post_init__(self) -> None:
        if not self.end_time > self.start_time:
            raise ValueError(f"Segment {self.segment_id} must end after it starts.")
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Segment {self.segment_id} score must be in [0, 1], got {self.score}.")

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True, slots=True)
class TimePoint:
    time: float
    audio_energy: float
    is_speech: bool
    is_scene_change: bool


@dataclass(frozen=True, slots=True)
class NormalizedTimeline:
    """Fixed-step view of a signal bundle used for segmentation and scoring."""

    time_points: tuple[TimePoint, ...]
    total_duration: float


@dataclass(frozen=True, slots=True)
class Clip:
    clip_id: str
    source_id: str
    source_start: float
    source_end: float
    target_start: float
    duration: float
    volume: float = 1.0

    @property
    def target_end(self) -> float:
        return self.target_start + self.duration


@dataclass(frozen=True, slots=True)
class Transition:
    type: str
    duration: float
    at_time: float


@dataclass(frozen=True, slots=True)
class Resolution:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class PlanMetadata:
    total_duration: float
    fps: int
    resolution: Resolution


@dataclass(frozen=True, slots=True)
class EditPlan:
    """Render-ready instruction set handed to the external renderer."""

    plan_id: str
    generated_at: str
    clips: tuple[Clip, ...] = ()
    transitions: tuple[Transition, ...] = ()
    metadata: PlanMetadata = field(
        default_factory=lambda: PlanMetadata(total_duration=0.0, fps=30, resolution=Resolution(1920, 1080))
    )
