"""Preset profiles — prompting and pacing defaults per creative preset."""

from __future__ import annotations

from dataclasses import dataclass

from autotube.domain.enums import Preset

_MIN_SEGMENTS = 3
_MAX_SEGMENTS = 40


@dataclass(frozen=True)
class PresetProfile:
    """Creative defaults bundled under a preset name.

    Profiles only change prompt wording and segment pacing; every preset
    runs through the same stage sequence.
    """

    preset: Preset
    tone: str
    style_notes: str
    words_per_second: float
    seconds_per_segment: float
    default_tags: tuple[str, ...]

    def __post_init__(self) -> None:
        if self.words_per_second <= 0:
            raise ValueError(f"words_per_second must be positive, got {self.words_per_second}")
        if self.seconds_per_segment <= 0:
            raise ValueError(f"seconds_per_segment must be positive, got {self.seconds_per_segment}")

    def segment_count(self, target_duration_seconds: float) -> int:
        """Number of narration segments to request for the target duration."""
        count = round(target_duration_seconds / self.seconds_per_segment)
        return max(_MIN_SEGMENTS, min(_MAX_SEGMENTS, count))

    def word_budget(self, target_duration_seconds: float) -> int:
        """Approximate spoken word count that fills the target duration."""
        return max(1, round(target_duration_seconds * self.words_per_second))

    def estimate_seconds(self, text: str) -> float:
        """Estimated spoken duration of ``text`` at this preset's pace."""
        words = len(text.split())
        return max(words / self.words_per_second, 1.0)


PRESETS: dict[Preset, PresetProfile] = {
    Preset.NEWS: PresetProfile(
        preset=Preset.NEWS,
        tone="crisp, neutral news anchor",
        style_notes="Lead with the most important development. One story per segment. No filler.",
        words_per_second=2.6,
        seconds_per_segment=10.0,
        default_tags=("news", "ai", "daily briefing"),
    ),
    Preset.FACTS: PresetProfile(
        preset=Preset.FACTS,
        tone="upbeat and curiosity-driven",
        style_notes="Each segment is one surprising fact with a short payoff line.",
        words_per_second=2.8,
        seconds_per_segment=6.0,
        default_tags=("facts", "did you know", "shorts"),
    ),
    Preset.LONGFORM: PresetProfile(
        preset=Preset.LONGFORM,
        tone="calm, thorough explainer",
        style_notes="Build context before conclusions. Segments flow as paragraphs of one argument.",
        words_per_second=2.4,
        seconds_per_segment=20.0,
        default_tags=("explainer", "deep dive", "ai"),
    ),
}


def profile_for(preset: Preset) -> PresetProfile:
    """Return the profile bundled under ``preset``."""
    return PRESETS[preset]
