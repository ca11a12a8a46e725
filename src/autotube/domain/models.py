"""Domain models — frozen dataclasses for run configuration, artifacts, and events."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from autotube.domain.enums import EventStatus, Preset, QualityTier, Visibility
from autotube.domain.types import EventId, RunId, VideoId


def _freeze_mapping(m: Mapping[str, Any]) -> MappingProxyType[str, Any]:
    """Wrap a mutable mapping in MappingProxyType for immutability."""
    if isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m))


@dataclass(frozen=True)
class Credentials:
    """Per-run credential set for every downstream service. Read-only."""

    openai_api_key: str
    elevenlabs_api_key: str
    pexels_api_key: str
    youtube_client_id: str
    youtube_client_secret: str
    youtube_refresh_token: str

    def __repr__(self) -> str:
        return "Credentials(<redacted>)"


@dataclass(frozen=True)
class RunConfig:
    """Immutable input to one pipeline run. Every field has a concrete value."""

    topic: str
    target_duration_seconds: float
    voice_id: str
    preset: Preset
    credentials: Credentials
    title_template: str
    description_template: str
    tags: tuple[str, ...] = field(default_factory=tuple)
    visibility: Visibility = Visibility.UNLISTED
    allow_copyrighted_audio: bool = False
    webhook_url: str = ""
    extra_instructions: str = ""
    run_context: str = ""

    def __post_init__(self) -> None:
        if not self.topic.strip():
            raise ValueError("topic must not be empty")
        if self.target_duration_seconds <= 0:
            raise ValueError(f"target_duration_seconds must be positive, got {self.target_duration_seconds}")
        if not self.voice_id:
            raise ValueError("voice_id must not be empty")
        object.__setattr__(self, "tags", tuple(self.tags))


@dataclass(frozen=True)
class ScriptSegment:
    """One narration unit with its approximate spoken duration."""

    text: str
    duration_seconds: float
    keywords: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", self.text.strip())
        if not self.text:
            raise ValueError("segment text must not be empty")
        if self.duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be positive, got {self.duration_seconds}")
        object.__setattr__(self, "keywords", tuple(self.keywords))

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass(frozen=True)
class Script:
    """Ordered narration segments produced by the Script Stage."""

    title: str
    segments: tuple[ScriptSegment, ...]
    preset: Preset

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("segments must not be empty")

    @property
    def estimated_duration_seconds(self) -> float:
        return sum(s.duration_seconds for s in self.segments)

    @property
    def word_count(self) -> int:
        return sum(s.word_count for s in self.segments)

    @property
    def full_text(self) -> str:
        return "\n\n".join(s.text for s in self.segments)


@dataclass(frozen=True)
class Narration:
    """Synthesized narration audio and its measured duration."""

    audio_path: Path
    duration_seconds: float
    size_bytes: int

    def __post_init__(self) -> None:
        if self.duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be positive, got {self.duration_seconds}")
        if self.size_bytes <= 0:
            raise ValueError(f"size_bytes must be positive, got {self.size_bytes}")


@dataclass(frozen=True)
class FootageCandidate:
    """A stock video returned by a footage search, at its best available file."""

    clip_id: str
    file_url: str
    duration_seconds: float
    width: int
    height: int
    quality: QualityTier
    page_url: str = ""

    def __post_init__(self) -> None:
        if not self.clip_id:
            raise ValueError("clip_id must not be empty")
        if not self.file_url:
            raise ValueError("file_url must not be empty")
        if self.duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be positive, got {self.duration_seconds}")


@dataclass(frozen=True)
class FootageClip:
    """A downloaded candidate with the narration time it was chosen to cover."""

    candidate: FootageCandidate
    path: Path
    query: str
    allotted_seconds: float

    def __post_init__(self) -> None:
        if self.allotted_seconds < 0:
            raise ValueError(f"allotted_seconds must be non-negative, got {self.allotted_seconds}")

    @property
    def duration_seconds(self) -> float:
        return self.candidate.duration_seconds


@dataclass(frozen=True)
class FootageSet:
    """Ordered clips sourced for one run."""

    clips: tuple[FootageClip, ...]

    def __post_init__(self) -> None:
        if not self.clips:
            raise ValueError("clips must not be empty")

    @property
    def total_duration_seconds(self) -> float:
        return sum(c.duration_seconds for c in self.clips)


@dataclass(frozen=True)
class TimelineEntry:
    """One cut in the render timeline: play ``duration_seconds`` of ``path`` from its start."""

    path: Path
    duration_seconds: float
    loop: bool = False

    def __post_init__(self) -> None:
        if self.duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be positive, got {self.duration_seconds}")


@dataclass(frozen=True)
class RenderedVideo:
    """Merged video with narration audio, ready to publish."""

    path: Path
    duration_seconds: float
    size_bytes: int

    def __post_init__(self) -> None:
        if self.duration_seconds <= 0:
            raise ValueError(f"duration_seconds must be positive, got {self.duration_seconds}")


@dataclass(frozen=True)
class UploadMetadata:
    """Final, template-expanded metadata sent to the video platform."""

    title: str
    description: str
    tags: tuple[str, ...]
    visibility: Visibility
    category_id: str = "28"

    def __post_init__(self) -> None:
        if not self.title:
            raise ValueError("title must not be empty")


@dataclass(frozen=True)
class PublishResult:
    """Durable reference to the published video."""

    video_id: VideoId
    url: str
    visibility: Visibility
    title: str
    description: str
    tags: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.video_id:
            raise ValueError("video_id must not be empty")
        if not self.url:
            raise ValueError("url must not be empty")


@dataclass(frozen=True)
class NotifyReceipt:
    """Outcome of the webhook delivery attempt."""

    delivered: bool
    status_code: int | None = None
    skipped: bool = False


@dataclass(frozen=True)
class RunArtifacts:
    """Artifacts accumulated during one run, replaced (never mutated) per stage."""

    script: Script | None = None
    narration: Narration | None = None
    footage: FootageSet | None = None
    render: RenderedVideo | None = None
    publish: PublishResult | None = None
    notify: NotifyReceipt | None = None


@dataclass(frozen=True)
class RunEvent:
    """Unit of observability emitted by the Conductor."""

    id: EventId
    status: EventStatus
    title: str
    timestamp: str
    detail: str | None = None
    meta: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.meta, MappingProxyType):
            object.__setattr__(self, "meta", _freeze_mapping(self.meta))
        if not self.title:
            raise ValueError("title must not be empty")

    @property
    def is_terminal(self) -> bool:
        """True for ``success`` and for ``error`` events that end the run."""
        if self.status == EventStatus.SUCCESS:
            return True
        return self.status == EventStatus.ERROR and bool(self.meta.get("terminal", True))

    def to_dict(self) -> dict[str, Any]:
        """Wire form: one JSON object per event."""
        payload: dict[str, Any] = {
            "id": self.id,
            "status": self.status.value,
            "title": self.title,
            "timestamp": self.timestamp,
        }
        if self.detail:
            payload["detail"] = self.detail
        if self.meta:
            payload["meta"] = dict(self.meta)
        return payload


@dataclass(frozen=True)
class RunReport:
    """Collected outcome of an unattended run."""

    ok: bool
    events: tuple[RunEvent, ...]
    run_id: RunId | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "events": [e.to_dict() for e in self.events]}
