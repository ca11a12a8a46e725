"""Pipeline settings — Pydantic BaseSettings for configuration from environment and .env."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"
DEFAULT_TOPIC = "Daily AI news recap"
DEFAULT_TARGET_DURATION = 120.0
DEFAULT_TITLE_TEMPLATE = "Daily AI Briefing - {{date}}"
DEFAULT_DESCRIPTION_TEMPLATE = "Automated summary for {{date}}."


def _env(name: str, field_name: str) -> AliasChoices:
    """Accept the ``PIPELINE_*`` variable name from the environment and the field name in code."""
    return AliasChoices(name, field_name)


class PipelineSettings(BaseSettings):
    """Pipeline configuration loaded from environment variables and .env file.

    Credentials and run defaults feed the unattended trigger; the same
    defaults fill blank fields of interactive requests. Runtime knobs tune
    adapters and the HTTP server.
    """

    # Credentials
    openai_api_key: str = Field(default="", description="OpenAI API key for script generation")
    elevenlabs_api_key: str = Field(default="", description="ElevenLabs API key for voice synthesis")
    pexels_api_key: str = Field(default="", description="Pexels API key for stock footage")
    youtube_client_id: str = Field(default="", description="Google OAuth client id")
    youtube_client_secret: str = Field(default="", description="Google OAuth client secret")
    youtube_refresh_token: str = Field(default="", description="Long-lived YouTube refresh token")

    # Run defaults
    default_topic: str = Field(default=DEFAULT_TOPIC, validation_alias=_env("PIPELINE_DEFAULT_TOPIC", "default_topic"))
    target_duration: float = Field(
        default=DEFAULT_TARGET_DURATION,
        validation_alias=_env("PIPELINE_TARGET_DURATION", "target_duration"),
        description="Target narration length in seconds; invalid or non-positive values fall back to 120",
    )
    voice_id: str = Field(default=DEFAULT_VOICE_ID, validation_alias=_env("PIPELINE_VOICE_ID", "voice_id"))
    upload_title_template: str = Field(
        default=DEFAULT_TITLE_TEMPLATE,
        validation_alias=_env("PIPELINE_UPLOAD_TITLE_TEMPLATE", "upload_title_template"),
    )
    upload_description_template: str = Field(
        default=DEFAULT_DESCRIPTION_TEMPLATE,
        validation_alias=_env("PIPELINE_UPLOAD_DESCRIPTION_TEMPLATE", "upload_description_template"),
    )
    upload_tags: str = Field(
        default="",
        validation_alias=_env("PIPELINE_UPLOAD_TAGS", "upload_tags"),
        description="Comma-separated tags; empty uses the preset's default tags",
    )
    upload_visibility: str = Field(
        default="unlisted", validation_alias=_env("PIPELINE_UPLOAD_VISIBILITY", "upload_visibility")
    )
    preset: str = Field(default="news", validation_alias=_env("PIPELINE_PRESET", "preset"))
    webhook_url: str = Field(default="", validation_alias=_env("PIPELINE_WEBHOOK_URL", "webhook_url"))
    allow_copyrighted_audio: bool = Field(
        default=False, validation_alias=_env("PIPELINE_ALLOW_COPY_AUDIO", "allow_copyrighted_audio")
    )
    run_context: str = Field(default="", validation_alias=_env("PIPELINE_RUN_CONTEXT", "run_context"))
    extra_instructions: str = Field(
        default="", validation_alias=_env("PIPELINE_EXTRA_INSTRUCTIONS", "extra_instructions")
    )

    # Runtime
    workspace_dir: Path = Field(default=Path("workspace"), description="Base directory for run workspaces")
    keep_workspace: bool = Field(default=False, description="Keep run workspaces after the run ends (debugging)")
    openai_model: str = Field(default="gpt-4o-mini", description="Chat completion model for scripts")
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    elevenlabs_model_id: str = Field(default="eleven_multilingual_v2")
    http_timeout_seconds: float = Field(default=60.0, gt=0, description="Timeout for outbound HTTP requests")
    webhook_timeout_seconds: float = Field(default=10.0, gt=0)
    ffmpeg_threads: int = Field(default=2, ge=1)
    render_width: int = Field(default=1920, ge=16)
    render_height: int = Field(default=1080, ge=16)
    render_fps: int = Field(default=30, ge=1, le=120)
    loop_tolerance_seconds: float = Field(default=5.0, ge=0, description="Largest footage gap filled by looping")
    youtube_category_id: str = Field(default="28", description="YouTube category id (28 = Science & Technology)")
    timezone: str = Field(default="UTC", description="Timezone used for the {{date}} template token")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    model_config = {
        "env_prefix": "",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("target_duration", mode="before")
    @classmethod
    def _coerce_duration(cls, value: Any) -> float:
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return DEFAULT_TARGET_DURATION
        return seconds if seconds > 0 else DEFAULT_TARGET_DURATION

    @field_validator("allow_copyrighted_audio", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"true", "1", "yes", "on"}

    def run_payload(self) -> dict[str, Any]:
        """The environment's run configuration in request-body form."""
        return {
            "openaiKey": self.openai_api_key,
            "elevenLabsKey": self.elevenlabs_api_key,
            "pexelsKey": self.pexels_api_key,
            "youtubeClientId": self.youtube_client_id,
            "youtubeClientSecret": self.youtube_client_secret,
            "youtubeRefreshToken": self.youtube_refresh_token,
            "voiceId": self.voice_id,
            "videoTopic": self.default_topic,
            "targetDurationSeconds": self.target_duration,
            "uploadTitleTemplate": self.upload_title_template,
            "uploadDescriptionTemplate": self.upload_description_template,
            "uploadTags": self.upload_tags,
            "visibility": self.upload_visibility,
            "allowCopyrightAudio": self.allow_copyrighted_audio,
            "preset": self.preset,
            "webhookUrl": self.webhook_url,
            "runContext": self.run_context,
            "extraInstructions": self.extra_instructions,
        }
