"""Run request — coerce and validate a trigger payload into a RunConfig.

Both trigger paths go through ``build_run_config``: the interactive POST body
and the unattended environment payload (``PipelineSettings.run_payload``).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from autotube.app.settings import DEFAULT_TARGET_DURATION, DEFAULT_VOICE_ID, PipelineSettings
from autotube.domain.enums import Preset, Visibility
from autotube.domain.errors import ValidationFailure
from autotube.domain.models import Credentials, RunConfig
from autotube.domain.presets import profile_for

INVALID_PAYLOAD = "Invalid payload"

# Fallbacks for interactive request bodies; the environment defaults apply to unattended runs only
REQUEST_TOPIC = "Daily AI news round-up"
REQUEST_TITLE_TEMPLATE = "Daily AI Highlights - {{date}}"
REQUEST_DESCRIPTION_TEMPLATE = "Automated AI news for {{date}}."

_TAG_SPLIT_RE = re.compile(r"[,\n]+")
_URL_RE = re.compile(r"^https?://[^\s/?#]+\S*$", re.IGNORECASE)
_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})

_TEXT_FIELDS = (
    "openaiKey",
    "elevenLabsKey",
    "pexelsKey",
    "youtubeClientId",
    "youtubeClientSecret",
    "youtubeRefreshToken",
)


@dataclass(frozen=True)
class RunDefaults:
    """Values substituted for blank or unrecognised request fields."""

    topic: str
    target_duration_seconds: float
    voice_id: str
    title_template: str
    description_template: str
    tags: tuple[str, ...]
    visibility: str
    preset: str
    webhook_url: str = ""
    run_context: str = ""
    extra_instructions: str = ""

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> RunDefaults:
        return cls(
            topic=settings.default_topic,
            target_duration_seconds=settings.target_duration,
            voice_id=settings.voice_id,
            title_template=settings.upload_title_template,
            description_template=settings.upload_description_template,
            tags=split_tags(settings.upload_tags),
            visibility=settings.upload_visibility,
            preset=settings.preset,
            webhook_url=settings.webhook_url,
            run_context=settings.run_context,
            extra_instructions=settings.extra_instructions,
        )

    @classmethod
    def for_requests(cls) -> RunDefaults:
        return cls(
            topic=REQUEST_TOPIC,
            target_duration_seconds=DEFAULT_TARGET_DURATION,
            voice_id=DEFAULT_VOICE_ID,
            title_template=REQUEST_TITLE_TEMPLATE,
            description_template=REQUEST_DESCRIPTION_TEMPLATE,
            tags=(),
            visibility=Visibility.UNLISTED.value,
            preset=Preset.NEWS.value,
        )


class RunRequest(BaseModel):
    """Validated run input in request-body (camelCase) form."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    openai_key: str = Field(alias="openaiKey", min_length=1)
    elevenlabs_key: str = Field(alias="elevenLabsKey", min_length=1)
    pexels_key: str = Field(alias="pexelsKey", min_length=1)
    youtube_client_id: str = Field(alias="youtubeClientId", min_length=1)
    youtube_client_secret: str = Field(alias="youtubeClientSecret", min_length=1)
    youtube_refresh_token: str = Field(alias="youtubeRefreshToken", min_length=1)
    voice_id: str = Field(alias="voiceId", min_length=1)
    video_topic: str = Field(alias="videoTopic", min_length=3, max_length=200)
    target_duration_seconds: float = Field(alias="targetDurationSeconds", gt=0, le=3600)
    upload_title_template: str = Field(alias="uploadTitleTemplate", min_length=1, max_length=200)
    upload_description_template: str = Field(default="", alias="uploadDescriptionTemplate", max_length=5000)
    upload_tags: list[str] = Field(default_factory=list, alias="uploadTags", max_length=30)
    visibility: Visibility = Field(alias="visibility")
    allow_copyright_audio: bool = Field(default=False, alias="allowCopyrightAudio")
    preset: Preset = Field(alias="preset")
    webhook_url: str = Field(default="", alias="webhookUrl")
    run_context: str = Field(default="", alias="runContext", max_length=4000)
    extra_instructions: str = Field(default="", alias="extraInstructions", max_length=2000)

    @field_validator("webhook_url")
    @classmethod
    def _check_webhook_url(cls, value: str) -> str:
        if value and not _URL_RE.match(value):
            raise ValueError("must be an http(s) URL")
        return value

    def to_run_config(self) -> RunConfig:
        return RunConfig(
            topic=self.video_topic,
            target_duration_seconds=self.target_duration_seconds,
            voice_id=self.voice_id,
            preset=self.preset,
            credentials=Credentials(
                openai_api_key=self.openai_key,
                elevenlabs_api_key=self.elevenlabs_key,
                pexels_api_key=self.pexels_key,
                youtube_client_id=self.youtube_client_id,
                youtube_client_secret=self.youtube_client_secret,
                youtube_refresh_token=self.youtube_refresh_token,
            ),
            title_template=self.upload_title_template,
            description_template=self.upload_description_template,
            tags=tuple(self.upload_tags),
            visibility=self.visibility,
            allow_copyrighted_audio=self.allow_copyright_audio,
            webhook_url=self.webhook_url,
            extra_instructions=self.extra_instructions,
            run_context=self.run_context,
        )


def split_tags(value: Any) -> tuple[str, ...]:
    """Tags from a list or a comma/newline separated string, trimmed, blanks dropped."""
    if isinstance(value, str):
        items: list[Any] = _TAG_SPLIT_RE.split(value)
    elif isinstance(value, list | tuple):
        items = list(value)
    else:
        return ()
    return tuple(dict.fromkeys(t for t in (str(i).strip() for i in items if i is not None) if t))


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _duration(value: Any, default: float) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return default
    return seconds if seconds > 0 else default


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _text(value).lower() in _TRUE_STRINGS


def _choice(value: Any, allowed: set[str], default: str) -> str:
    text = _text(value).lower()
    return text if text in allowed else default


def coerce_payload(body: Any, defaults: RunDefaults) -> dict[str, Any]:
    """Normalise a raw payload before validation.

    Strings are trimmed, blanks take the defaults, unknown visibility and
    preset values fall back, and non-numeric or non-positive durations fall
    back. Credentials have no defaults here.
    """
    if not isinstance(body, Mapping):
        raise ValidationFailure(INVALID_PAYLOAD, [{"field": "", "message": "Expected a JSON object"}])

    preset = _choice(body.get("preset"), {p.value for p in Preset}, defaults.preset)
    tags = split_tags(body.get("uploadTags")) or defaults.tags
    if not tags and preset in {p.value for p in Preset}:
        tags = profile_for(Preset(preset)).default_tags

    payload: dict[str, Any] = {name: _text(body.get(name)) for name in _TEXT_FIELDS}
    payload.update(
        {
            "voiceId": _text(body.get("voiceId")) or defaults.voice_id,
            "videoTopic": _text(body.get("videoTopic")) or defaults.topic,
            "targetDurationSeconds": _duration(
                body.get("targetDurationSeconds"), defaults.target_duration_seconds or DEFAULT_TARGET_DURATION
            ),
            "uploadTitleTemplate": _text(body.get("uploadTitleTemplate")) or defaults.title_template,
            "uploadDescriptionTemplate": _text(body.get("uploadDescriptionTemplate"))
            or defaults.description_template,
            "uploadTags": list(tags),
            "visibility": _choice(body.get("visibility"), {v.value for v in Visibility}, defaults.visibility),
            "allowCopyrightAudio": _flag(body.get("allowCopyrightAudio")),
            "preset": preset,
            "webhookUrl": _text(body.get("webhookUrl")) or defaults.webhook_url,
            "runContext": _text(body.get("runContext")) or defaults.run_context,
            "extraInstructions": _text(body.get("extraInstructions")) or defaults.extra_instructions,
        }
    )
    return payload


def _issues(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def build_run_config(body: Any, defaults: RunDefaults) -> RunConfig:
    """Coerce, validate, and freeze one run's configuration.

    Raises ValidationFailure with one issue per rejected field; no stage
    runs for an invalid payload.
    """
    payload = coerce_payload(body, defaults)
    try:
        request = RunRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailure(INVALID_PAYLOAD, _issues(exc)) from exc
    return request.to_run_config()
