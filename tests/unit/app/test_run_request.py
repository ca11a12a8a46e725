"""Tests for run request coercion and validation."""

from __future__ import annotations

from typing import Any

import pytest

from autotube.app.run_request import RunDefaults, build_run_config, coerce_payload, split_tags
from autotube.app.settings import PipelineSettings
from autotube.domain.enums import Preset, Visibility
from autotube.domain.errors import ValidationFailure


@pytest.fixture
def defaults() -> RunDefaults:
    return RunDefaults(
        topic="Daily AI news recap",
        target_duration_seconds=120.0,
        voice_id="voice-default",
        title_template="Daily AI Briefing - {{date}}",
        description_template="Automated summary for {{date}}.",
        tags=(),
        visibility="unlisted",
        preset="news",
    )


def _body(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "openaiKey": "sk-test",
        "elevenLabsKey": "el-test",
        "pexelsKey": "px-test",
        "youtubeClientId": "cid",
        "youtubeClientSecret": "secret",
        "youtubeRefreshToken": "1//refresh",
        "videoTopic": "Solar power breakthroughs",
    }
    body.update(overrides)
    return body


class TestSplitTags:
    def test_comma_and_newline_string(self) -> None:
        assert split_tags("news, solar\nenergy,,") == ("news", "solar", "energy")

    def test_list_trimmed_and_deduplicated(self) -> None:
        assert split_tags([" news ", "solar", "news", "", None]) == ("news", "solar")

    def test_other_types_empty(self) -> None:
        assert split_tags(42) == ()


class TestCoercePayload:
    def test_blank_fields_take_defaults(self, defaults: RunDefaults) -> None:
        payload = coerce_payload(_body(videoTopic="   ", voiceId="", uploadTitleTemplate=None), defaults)
        assert payload["videoTopic"] == "Daily AI news recap"
        assert payload["voiceId"] == "voice-default"
        assert payload["uploadTitleTemplate"] == "Daily AI Briefing - {{date}}"

    def test_strings_trimmed(self, defaults: RunDefaults) -> None:
        payload = coerce_payload(_body(openaiKey="  sk-test  "), defaults)
        assert payload["openaiKey"] == "sk-test"

    @pytest.mark.parametrize("raw", ["abc", 0, -5, None])
    def test_bad_duration_falls_back(self, defaults: RunDefaults, raw: Any) -> None:
        assert coerce_payload(_body(targetDurationSeconds=raw), defaults)["targetDurationSeconds"] == 120.0

    def test_numeric_string_duration(self, defaults: RunDefaults) -> None:
        assert coerce_payload(_body(targetDurationSeconds="90"), defaults)["targetDurationSeconds"] == 90.0

    def test_unknown_visibility_and_preset_fall_back(self, defaults: RunDefaults) -> None:
        payload = coerce_payload(_body(visibility="secret", preset="weekly"), defaults)
        assert payload["visibility"] == "unlisted"
        assert payload["preset"] == "news"

    def test_case_insensitive_choices(self, defaults: RunDefaults) -> None:
        payload = coerce_payload(_body(visibility="PUBLIC", preset="Facts"), defaults)
        assert payload["visibility"] == "public"
        assert payload["preset"] == "facts"

    def test_tags_fall_back_to_preset(self, defaults: RunDefaults) -> None:
        payload = coerce_payload(_body(preset="longform"), defaults)
        assert payload["uploadTags"]

    def test_explicit_tags_win(self, defaults: RunDefaults) -> None:
        assert coerce_payload(_body(uploadTags="a, b"), defaults)["uploadTags"] == ["a", "b"]

    def test_copyright_flag_strings(self, defaults: RunDefaults) -> None:
        assert coerce_payload(_body(allowCopyrightAudio="yes"), defaults)["allowCopyrightAudio"] is True
        assert coerce_payload(_body(allowCopyrightAudio="no"), defaults)["allowCopyrightAudio"] is False
        assert coerce_payload(_body(), defaults)["allowCopyrightAudio"] is False

    def test_non_object_rejected(self, defaults: RunDefaults) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            coerce_payload(["not", "an", "object"], defaults)
        assert exc_info.value.issues[0]["message"] == "Expected a JSON object"


class TestBuildRunConfig:
    def test_valid_payload(self, defaults: RunDefaults) -> None:
        config = build_run_config(_body(visibility="private", preset="facts", uploadTags=["x"]), defaults)

        assert config.topic == "Solar power breakthroughs"
        assert config.target_duration_seconds == 120.0
        assert config.visibility == Visibility.PRIVATE
        assert config.preset == Preset.FACTS
        assert config.tags == ("x",)
        assert config.credentials.openai_api_key == "sk-test"
        assert config.voice_id == "voice-default"

    def test_missing_credentials_listed(self, defaults: RunDefaults) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            build_run_config(_body(openaiKey="", pexelsKey="  "), defaults)

        fields = {issue["field"] for issue in exc_info.value.issues}
        assert fields == {"openaiKey", "pexelsKey"}
        assert exc_info.value.message == "Invalid payload"

    def test_topic_too_short(self, defaults: RunDefaults) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            build_run_config(_body(videoTopic="AI"), defaults)
        assert exc_info.value.issues[0]["field"] == "videoTopic"

    def test_duration_above_limit(self, defaults: RunDefaults) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            build_run_config(_body(targetDurationSeconds=7200), defaults)
        assert exc_info.value.issues[0]["field"] == "targetDurationSeconds"

    def test_bad_webhook_url(self, defaults: RunDefaults) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            build_run_config(_body(webhookUrl="ftp://example.com/hook"), defaults)
        assert exc_info.value.issues[0]["field"] == "webhookUrl"

    def test_webhook_url_accepted(self, defaults: RunDefaults) -> None:
        config = build_run_config(_body(webhookUrl="https://hooks.example.com/abc"), defaults)
        assert config.webhook_url == "https://hooks.example.com/abc"

    def test_too_many_tags(self, defaults: RunDefaults) -> None:
        with pytest.raises(ValidationFailure):
            build_run_config(_body(uploadTags=[f"t{i}" for i in range(31)]), defaults)


class TestRunDefaults:
    def test_from_settings(self) -> None:
        settings = PipelineSettings(_env_file=None, upload_tags="alpha, beta", webhook_url="https://h.example.com")
        defaults = RunDefaults.from_settings(settings)
        assert defaults.tags == ("alpha", "beta")
        assert defaults.webhook_url == "https://h.example.com"
        assert defaults.target_duration_seconds == 120.0

    def test_environment_payload_round_trip(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PIPELINE_ALLOW_COPY_AUDIO", raising=False)
        settings = PipelineSettings(
            _env_file=None,
            openai_api_key="sk",
            elevenlabs_api_key="el",
            pexels_api_key="px",
            youtube_client_id="cid",
            youtube_client_secret="secret",
            youtube_refresh_token="1//r",
        )
        config = build_run_config(settings.run_payload(), RunDefaults.from_settings(settings))
        assert config.topic == "Daily AI news recap"
        assert config.allow_copyrighted_audio is False
        assert config.preset == Preset.NEWS

    def test_copyrighted_audio_needs_explicit_opt_in(self, monkeypatch: pytest.MonkeyPatch) -> None:
        credentials = {
            "openai_api_key": "sk",
            "elevenlabs_api_key": "el",
            "pexels_api_key": "px",
            "youtube_client_id": "cid",
            "youtube_client_secret": "secret",
            "youtube_refresh_token": "1//r",
        }
        monkeypatch.delenv("PIPELINE_ALLOW_COPY_AUDIO", raising=False)
        unset = PipelineSettings(_env_file=None, **credentials)
        assert build_run_config(unset.run_payload(), RunDefaults.from_settings(unset)).allow_copyrighted_audio is False

        monkeypatch.setenv("PIPELINE_ALLOW_COPY_AUDIO", "true")
        opted_in = PipelineSettings(_env_file=None, **credentials)
        assert build_run_config(opted_in.run_payload(), RunDefaults.from_settings(opted_in)).allow_copyrighted_audio

    def test_request_defaults_ignore_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PIPELINE_DEFAULT_TOPIC", "Ocean exploration")
        defaults = RunDefaults.for_requests()
        assert defaults.topic == "Daily AI news round-up"
        assert defaults.title_template == "Daily AI Highlights - {{date}}"
        assert defaults.description_template == "Automated AI news for {{date}}."
        assert defaults.webhook_url == ""

    def test_blank_request_fields_use_request_defaults(self) -> None:
        payload = coerce_payload(_body(videoTopic="", uploadTitleTemplate="  "), RunDefaults.for_requests())
        assert payload["videoTopic"] == "Daily AI news round-up"
        assert payload["uploadTitleTemplate"] == "Daily AI Highlights - {{date}}"
        assert payload["uploadDescriptionTemplate"] == "Automated AI news for {{date}}."
