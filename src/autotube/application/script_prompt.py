"""Script prompt builder and reply parser for the text-generation service."""

from __future__ import annotations

import json
import re
from typing import Any

from autotube.domain.models import RunConfig, Script, ScriptSegment
from autotube.domain.presets import PresetProfile

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")
_MAX_KEYWORDS = 4


def build_system_prompt(profile: PresetProfile) -> str:
    """Persona and output contract shared by every run of ``profile``."""
    return (
        f"You write narration scripts for short YouTube videos in a {profile.tone} voice. "
        f"{profile.style_notes}\n\n"
        "Respond with a single JSON object and nothing else:\n"
        '{"title": string, "segments": [{"text": string, "keywords": [string, ...]}]}\n\n'
        "- Each segment is spoken narration only: no stage directions, headings, or emoji.\n"
        f"- Give each segment 2 to {_MAX_KEYWORDS} concrete, filmable keywords for stock footage search "
        "(objects, places, actions). Avoid names of people and brands."
    )


def build_user_prompt(config: RunConfig, profile: PresetProfile) -> str:
    """Per-run request: topic, pacing budget, and operator instructions."""
    target = config.target_duration_seconds
    sections: list[str] = [
        f"Topic: {config.topic}",
        (
            f"Target length: {target:.0f} seconds of narration, about "
            f"{profile.word_budget(target)} spoken words split into "
            f"{profile.segment_count(target)} segments."
        ),
    ]

    if config.run_context:
        sections.append(f"Context for this run:\n{config.run_context}")

    if config.extra_instructions:
        sections.append(f"Additional instructions:\n{config.extra_instructions}")

    if config.allow_copyrighted_audio:
        sections.append("Segments may reference songs, artists, or soundtracks where relevant.")
    else:
        sections.append(
            "Do not reference copyrighted music, songs, artists' recordings, or soundtracks, "
            "and do not suggest music-related keywords."
        )

    return "\n\n".join(sections)


def parse_script(raw: str, config: RunConfig, profile: PresetProfile) -> Script | None:
    """Turn a model reply into a Script, or None when no narration unit survives.

    JSON replies are read segment by segment; anything else is treated as
    prose and split on sentence boundaries into the preset's segment count.
    """
    text = _FENCE_RE.sub("", raw.strip())
    data = _load_json(text)

    if data is not None:
        title = str(data.get("title") or "").strip() or config.topic
        segments = _segments_from_json(data.get("segments"), profile)
    else:
        title = config.topic
        segments = _segments_from_prose(text, profile.segment_count(config.target_duration_seconds), profile)

    if not segments:
        return None
    return Script(title=title, segments=tuple(segments), preset=profile.preset)


def _load_json(text: str) -> dict[str, Any] | None:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return data


def _segments_from_json(items: Any, profile: PresetProfile) -> list[ScriptSegment]:
    if not isinstance(items, list):
        return []
    segments: list[ScriptSegment] = []
    for item in items:
        if isinstance(item, str):
            text, keywords = item, []
        elif isinstance(item, dict):
            text = str(item.get("text") or "")
            raw_keywords = item.get("keywords") or []
            keywords = raw_keywords if isinstance(raw_keywords, list) else []
        else:
            continue
        text = text.strip()
        if not text:
            continue
        cleaned = tuple(str(k).strip().lower() for k in keywords if str(k).strip())[:_MAX_KEYWORDS]
        segments.append(ScriptSegment(text=text, duration_seconds=profile.estimate_seconds(text), keywords=cleaned))
    return segments


def _segments_from_prose(text: str, count: int, profile: PresetProfile) -> list[ScriptSegment]:
    sentences = [s.strip() for s in _SENTENCE_RE.split(" ".join(text.split())) if s.strip()]
    if not sentences:
        return []
    count = min(count, len(sentences))
    per_group = len(sentences) / count
    segments: list[ScriptSegment] = []
    for i in range(count):
        group = sentences[round(i * per_group) : round((i + 1) * per_group)]
        if not group:
            continue
        chunk = " ".join(group)
        segments.append(ScriptSegment(text=chunk, duration_seconds=profile.estimate_seconds(chunk)))
    return segments
