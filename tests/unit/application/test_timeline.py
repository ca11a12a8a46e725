"""Tests for plan_timeline — fitting clips to the narration length."""

from __future__ import annotations

from pathlib import Path

import pytest

from autotube.application.timeline import plan_timeline
from autotube.domain.enums import QualityTier
from autotube.domain.errors import RenderFailure
from autotube.domain.models import FootageCandidate, FootageClip, FootageSet


def _clip(name: str, duration: float, allotted: float) -> FootageClip:
    candidate = FootageCandidate(
        clip_id=name,
        file_url=f"https://cdn.example.com/{name}.mp4",
        duration_seconds=duration,
        width=1920,
        height=1080,
        quality=QualityTier.HD,
    )
    return FootageClip(candidate=candidate, path=Path(f"/ws/clips/{name}.mp4"), query="q", allotted_seconds=allotted)


def _total(entries) -> float:
    return sum(e.duration_seconds for e in entries)


class TestPlanTimeline:
    def test_exact_fit(self) -> None:
        footage = FootageSet(clips=(_clip("a", 10, 10), _clip("b", 10, 10)))
        entries = plan_timeline(footage, 20.0)
        assert [e.duration_seconds for e in entries] == [10, 10]
        assert not any(e.loop for e in entries)

    def test_long_clips_trimmed_to_allotment(self) -> None:
        footage = FootageSet(clips=(_clip("a", 30, 10), _clip("b", 30, 10)))
        entries = plan_timeline(footage, 20.0)
        assert [e.duration_seconds for e in entries] == [10, 10]

    def test_shortfall_absorbed_by_spare_length(self) -> None:
        footage = FootageSet(clips=(_clip("a", 6, 10), _clip("b", 20, 10)))
        entries = plan_timeline(footage, 20.0)
        assert [e.duration_seconds for e in entries] == pytest.approx([6, 14])

    def test_top_up_clip_with_zero_allotment_used(self) -> None:
        footage = FootageSet(clips=(_clip("a", 8, 12), _clip("extra", 10, 0)))
        entries = plan_timeline(footage, 12.0)
        assert [e.path.name for e in entries] == ["a.mp4", "extra.mp4"]
        assert _total(entries) == pytest.approx(12.0)

    def test_small_gap_loops_shortest_clip(self) -> None:
        footage = FootageSet(clips=(_clip("a", 9, 10), _clip("b", 8, 10)))
        entries = plan_timeline(footage, 20.0, loop_tolerance_seconds=5.0)
        assert entries[-1].loop
        assert entries[-1].path.name == "b.mp4"
        assert _total(entries) == pytest.approx(20.0)

    def test_large_gap_fails(self) -> None:
        footage = FootageSet(clips=(_clip("a", 5, 10), _clip("b", 5, 10)))
        with pytest.raises(RenderFailure, match="covers 10.0s of 20.0s") as exc_info:
            plan_timeline(footage, 20.0, loop_tolerance_seconds=2.0)
        assert exc_info.value.reason == "insufficient_footage"

    def test_total_always_matches_narration(self) -> None:
        footage = FootageSet(clips=(_clip("a", 7.5, 7.1), _clip("b", 12, 6.2), _clip("c", 3, 4.0)))
        entries = plan_timeline(footage, 17.3)
        assert _total(entries) == pytest.approx(17.3)

    def test_zero_narration_rejected(self) -> None:
        footage = FootageSet(clips=(_clip("a", 5, 5),))
        with pytest.raises(RenderFailure):
            plan_timeline(footage, 0.0)
