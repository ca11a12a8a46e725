"""Footage selection — window planning, search-query fallbacks, and candidate choice.

Pure functions; the Footage Stage owns all I/O.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from autotube.domain.enums import QualityTier
from autotube.domain.models import FootageCandidate, Script

MIN_WINDOW_SECONDS = 3.0
MAX_WINDOW_SECONDS = 15.0

_WORD_RE = re.compile(r"[a-zA-Z][a-zA-Z'-]+")

_STOPWORDS = frozenset(
    {
        "about", "after", "again", "also", "among", "been", "before", "being", "between", "both",
        "could", "daily", "does", "down", "during", "each", "even", "every", "from", "have",
        "here", "into", "just", "like", "made", "make", "many", "more", "most", "much", "need",
        "news", "only", "other", "over", "recap", "said", "same", "should", "since", "some",
        "such", "than", "that", "their", "them", "then", "there", "these", "they", "this",
        "those", "through", "today", "under", "until", "very", "what", "when", "where", "which",
        "while", "will", "with", "would", "year", "your", "it's", "that's", "there's",
    }
)

# Subjects whose stock clips usually carry recognisable music or performances
AUDIO_TERMS = frozenset(
    {
        "album", "band", "concert", "dj", "festival", "guitar", "karaoke", "music", "musician",
        "orchestra", "piano", "playlist", "rapper", "singer", "singing", "song", "songs",
        "soundtrack", "violin",
    }
)


@dataclass(frozen=True)
class FootageWindow:
    """A span of narration that one clip (or an even split of it) should cover."""

    start_seconds: float
    duration_seconds: float
    keywords: tuple[str, ...]


def extract_keywords(text: str, limit: int = 4) -> tuple[str, ...]:
    """Most frequent content words of ``text``, ties broken by first appearance."""
    words = [w.lower().strip("'-") for w in _WORD_RE.findall(text)]
    words = [w for w in words if len(w) >= 4 and w not in _STOPWORDS]
    counts = Counter(words)
    first_seen = {w: i for i, w in reversed(list(enumerate(words)))}
    ranked = sorted(counts, key=lambda w: (-counts[w], first_seen[w]))
    return tuple(ranked[:limit])


def filter_audio_terms(keywords: Iterable[str], allow_copyrighted_audio: bool) -> tuple[str, ...]:
    """Drop music-centric keywords unless the run opted in to copyrighted audio."""
    if allow_copyrighted_audio:
        return tuple(keywords)
    return tuple(k for k in keywords if not (set(k.lower().split()) & AUDIO_TERMS))


def plan_windows(
    script: Script,
    narration_seconds: float,
    min_window_seconds: float = MIN_WINDOW_SECONDS,
    max_window_seconds: float = MAX_WINDOW_SECONDS,
) -> list[FootageWindow]:
    """Map script segments onto the measured narration timeline.

    Segment estimates are scaled so the windows sum to ``narration_seconds``.
    Short segments are folded into the following window (or the previous one
    at the end of the script); long ones are split evenly.
    """
    if narration_seconds <= 0:
        raise ValueError(f"narration_seconds must be positive, got {narration_seconds}")

    scale = narration_seconds / script.estimated_duration_seconds
    merged: list[tuple[float, tuple[str, ...]]] = []
    pending_seconds = 0.0
    pending_keywords: tuple[str, ...] = ()

    for segment in script.segments:
        keywords = segment.keywords or extract_keywords(segment.text)
        seconds = pending_seconds + segment.duration_seconds * scale
        keywords = _unique(pending_keywords + keywords)
        if seconds < min_window_seconds:
            pending_seconds, pending_keywords = seconds, keywords
            continue
        merged.append((seconds, keywords))
        pending_seconds, pending_keywords = 0.0, ()

    if pending_seconds > 0:
        if merged:
            last_seconds, last_keywords = merged[-1]
            merged[-1] = (last_seconds + pending_seconds, _unique(last_keywords + pending_keywords))
        else:
            merged.append((pending_seconds, pending_keywords))

    windows: list[FootageWindow] = []
    cursor = 0.0
    for seconds, keywords in merged:
        parts = max(1, math.ceil(seconds / max_window_seconds))
        for _ in range(parts):
            windows.append(FootageWindow(start_seconds=cursor, duration_seconds=seconds / parts, keywords=keywords))
            cursor += seconds / parts
    return windows


def search_queries(
    window_keywords: Sequence[str],
    topic: str,
    allow_copyrighted_audio: bool,
) -> list[str]:
    """Ordered, de-duplicated queries to try for one window.

    Combined window keywords first, then each keyword alone, then the topic's
    own keywords, then the topic verbatim.
    """
    keywords = filter_audio_terms(window_keywords, allow_copyrighted_audio)
    topic_keywords = filter_audio_terms(extract_keywords(topic), allow_copyrighted_audio)

    candidates: list[str] = []
    if len(keywords) > 1:
        candidates.append(" ".join(keywords[:2]))
    candidates.extend(keywords)
    if topic_keywords:
        candidates.append(" ".join(topic_keywords[:2]))
    if filter_audio_terms([topic], allow_copyrighted_audio):
        candidates.append(topic)
    return list(_unique(q.strip().lower() for q in candidates if q.strip()))


def choose_candidate(
    candidates: Sequence[FootageCandidate],
    window_seconds: float,
    used_ids: set[str] | frozenset[str],
    min_tier: QualityTier = QualityTier.HD,
) -> FootageCandidate | None:
    """Pick the best unused candidate for a window, or None.

    Clips at least as long as the window win, highest tier first and then the
    smallest surplus. Failing that, the longest qualifying clip is returned so
    later windows can make up the difference.
    """
    qualifying = [c for c in candidates if c.quality.rank >= min_tier.rank and c.clip_id not in used_ids]
    if not qualifying:
        return None
    long_enough = [c for c in qualifying if c.duration_seconds >= window_seconds]
    if long_enough:
        return min(long_enough, key=lambda c: (-c.quality.rank, c.duration_seconds - window_seconds))
    return max(qualifying, key=lambda c: (c.duration_seconds, c.quality.rank))


def _unique(items: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))
