"""Footage Stage — source and download stock clips covering the narration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from autotube.application.footage_selection import choose_candidate, plan_windows, search_queries
from autotube.application.stages.base import StageContext, StageSummary
from autotube.domain.enums import QualityTier, StageName
from autotube.domain.errors import SourcingFailure
from autotube.domain.models import FootageCandidate, FootageClip, FootageSet

if TYPE_CHECKING:
    from autotube.domain.models import RunArtifacts
    from autotube.domain.ports import FootageSearchPort

logger = logging.getLogger(__name__)


class FootageStage:
    """Pick one clip per narration window, then top up until the narration is covered.

    Search results are cached per query for the duration of the run, and a
    clip is never used twice.
    """

    name = StageName.FOOTAGE
    artifact_field = "footage"

    def __init__(self, search: FootageSearchPort, min_tier: QualityTier = QualityTier.HD) -> None:
        self._search = search
        self._min_tier = min_tier

    async def run(self, context: StageContext, artifacts: RunArtifacts) -> FootageSet:
        script, narration = artifacts.script, artifacts.narration
        if script is None or narration is None:
            raise SourcingFailure("Footage needs a script and a narration", reason="missing_input")

        config = context.config
        api_key = config.credentials.pexels_api_key
        target = narration.duration_seconds
        cache: dict[str, list[FootageCandidate]] = {}
        used: set[str] = set()
        picks: list[tuple[FootageCandidate, str, float]] = []
        all_queries: list[str] = []

        for window in plan_windows(script, target):
            queries = search_queries(window.keywords, config.topic, config.allow_copyrighted_audio)
            all_queries.extend(q for q in queries if q not in all_queries)
            pick = await self._first_match(queries, window.duration_seconds, used, cache, api_key)
            if pick is None:
                logger.warning("No footage for window at %.1fs (queries: %s)", window.start_seconds, queries)
                continue
            candidate, query = pick
            used.add(candidate.clip_id)
            picks.append((candidate, query, window.duration_seconds))

        total = sum(c.duration_seconds for c, _, _ in picks)
        while total < target:
            pick = await self._first_match(all_queries, target - total, used, cache, api_key)
            if pick is None:
                break
            candidate, query = pick
            used.add(candidate.clip_id)
            picks.append((candidate, query, 0.0))
            total += candidate.duration_seconds
            logger.info("Top-up clip %s adds %.1fs", candidate.clip_id, candidate.duration_seconds)

        if total < target:
            raise SourcingFailure(
                f"Found {total:.1f}s of footage for {target:.1f}s of narration",
                reason="insufficient_footage",
            )

        clips_dir = context.workspace / "clips"
        clips: list[FootageClip] = []
        for i, (candidate, query, allotted) in enumerate(picks):
            dest = clips_dir / f"{i:03d}-{candidate.clip_id}.mp4"
            path = await self._search.download(candidate, dest, api_key)
            clips.append(FootageClip(candidate=candidate, path=Path(path), query=query, allotted_seconds=allotted))

        logger.info("Footage: %d clips, %.1fs for %.1fs narration", len(clips), total, target)
        return FootageSet(clips=tuple(clips))

    async def _first_match(
        self,
        queries: list[str],
        window_seconds: float,
        used: set[str],
        cache: dict[str, list[FootageCandidate]],
        api_key: str,
    ) -> tuple[FootageCandidate, str] | None:
        for query in queries:
            if query not in cache:
                cache[query] = await self._search.search(query, api_key)
            candidate = choose_candidate(cache[query], window_seconds, used, self._min_tier)
            if candidate is not None:
                return candidate, query
        return None

    def summarize(self, artifact: FootageSet) -> StageSummary:
        return StageSummary(
            title="Footage ready",
            detail=f"{len(artifact.clips)} clips, {artifact.total_duration_seconds:.1f}s of footage",
            meta={
                "clips": len(artifact.clips),
                "footageSeconds": round(artifact.total_duration_seconds, 2),
                "queries": sorted({c.query for c in artifact.clips}),
            },
        )
