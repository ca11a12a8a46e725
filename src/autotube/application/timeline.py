"""Render timeline planning — fit sourced clips to the narration length."""

from __future__ import annotations

import logging

from autotube.domain.errors import RenderFailure
from autotube.domain.models import FootageSet, TimelineEntry

logger = logging.getLogger(__name__)

DEFAULT_LOOP_TOLERANCE_SECONDS = 5.0

# Cuts shorter than this are dropped; encoders cannot place them reliably
_MIN_CUT_SECONDS = 0.05


def plan_timeline(
    footage: FootageSet,
    narration_seconds: float,
    loop_tolerance_seconds: float = DEFAULT_LOOP_TOLERANCE_SECONDS,
) -> tuple[TimelineEntry, ...]:
    """Build cuts whose total length equals ``narration_seconds``.

    1. Each clip plays ``min(length, allotted)``.
    2. A shortfall is absorbed by extending clips with spare length, in order.
    3. A remaining shortfall up to ``loop_tolerance_seconds`` repeats the
       shortest clip; anything larger raises ``RenderFailure``.
    4. An overshoot trims the tail.

    The narration is never retimed to fit the pictures.
    """
    if narration_seconds <= 0:
        raise RenderFailure("Narration has no duration to render against", reason="empty_input")

    clips = footage.clips
    played = [min(c.duration_seconds, c.allotted_seconds) for c in clips]
    shortfall = narration_seconds - sum(played)

    for i, clip in enumerate(clips):
        if shortfall <= 0:
            break
        extra = min(clip.duration_seconds - played[i], shortfall)
        played[i] += extra
        shortfall -= extra

    entries = [
        TimelineEntry(path=clip.path, duration_seconds=seconds)
        for clip, seconds in zip(clips, played, strict=True)
        if seconds >= _MIN_CUT_SECONDS
    ]

    if shortfall >= _MIN_CUT_SECONDS:
        if shortfall > loop_tolerance_seconds:
            raise RenderFailure(
                f"Footage covers {narration_seconds - shortfall:.1f}s of {narration_seconds:.1f}s narration",
                reason="insufficient_footage",
            )
        shortest = min(clips, key=lambda c: c.duration_seconds)
        logger.info("Looping %s to cover %.2fs shortfall", shortest.path.name, shortfall)
        while shortfall >= _MIN_CUT_SECONDS:
            cut = min(shortest.duration_seconds, shortfall)
            entries.append(TimelineEntry(path=shortest.path, duration_seconds=cut, loop=True))
            shortfall -= cut

    return _trim_to(entries, narration_seconds)


def _trim_to(entries: list[TimelineEntry], total_seconds: float) -> tuple[TimelineEntry, ...]:
    trimmed: list[TimelineEntry] = []
    elapsed = 0.0
    for entry in entries:
        remaining = total_seconds - elapsed
        if remaining < _MIN_CUT_SECONDS:
            break
        if entry.duration_seconds > remaining:
            entry = TimelineEntry(path=entry.path, duration_seconds=remaining, loop=entry.loop)
        trimmed.append(entry)
        elapsed += entry.duration_seconds
    if not trimmed:
        raise RenderFailure("Timeline is empty", reason="empty_input")
    return tuple(trimmed)
