"""WorkspaceManager — per-run scratch directories, removed when the run ends."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from autotube.domain.types import RunId

logger = logging.getLogger(__name__)


class WorkspaceManager:
    """Create and clean up isolated run workspaces.

    Layout::

        {base_dir}/
            runs/
                <run_id>/
                    narration.mp3   # Narration Stage output
                    clips/          # Downloaded stock footage
                    render.mp4      # Render Stage output

    Nothing in a workspace outlives its run unless ``keep_workspaces`` is set,
    which is meant for debugging encoder problems.
    """

    def __init__(self, base_dir: Path, keep_workspaces: bool = False) -> None:
        self._base_dir = base_dir
        self._runs_dir = base_dir / "runs"
        self._keep = keep_workspaces

    @property
    def runs_dir(self) -> Path:
        return self._runs_dir

    def create_workspace(self, run_id: RunId) -> Path:
        """Create the workspace for ``run_id``. Fails if it already exists."""
        self._runs_dir.mkdir(parents=True, exist_ok=True)
        workspace = self._runs_dir / run_id
        workspace.mkdir()
        (workspace / "clips").mkdir()
        logger.info("Created workspace: %s", workspace.name)
        return workspace

    async def remove_workspace(self, workspace: Path) -> None:
        """Delete a workspace tree. Missing directories are ignored."""
        if not workspace.exists():
            return
        await asyncio.to_thread(shutil.rmtree, workspace, ignore_errors=True)
        logger.info("Removed workspace: %s", workspace.name)

    @asynccontextmanager
    async def managed_workspace(self, run_id: RunId) -> AsyncIterator[Path]:
        """Yield a fresh workspace and remove it on exit, including on failure or cancellation."""
        workspace = self.create_workspace(run_id)
        try:
            yield workspace
        finally:
            if self._keep:
                logger.info("Keeping workspace: %s", workspace)
            else:
                await self.remove_workspace(workspace)
