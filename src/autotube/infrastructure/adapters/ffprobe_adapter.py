"""FfprobeAdapter — async ffprobe wrapper implementing MediaProbePort."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from autotube.domain.ports import MediaProbePort

logger = logging.getLogger(__name__)

_FFPROBE_TIMEOUT_S = 30


class FfprobeAdapter:
    """Measure container duration of narration audio and rendered video.

    Returns None when the duration cannot be measured (non-zero exit,
    ``N/A`` output, timeout, missing binary); callers decide whether that
    is fatal.
    """

    if TYPE_CHECKING:
        _protocol_check: MediaProbePort

    def __init__(self, binary: str = "ffprobe", timeout_seconds: float = _FFPROBE_TIMEOUT_S) -> None:
        self._binary = binary
        self._timeout = timeout_seconds

    async def probe(self, path: Path) -> float | None:
        """Return duration in seconds, or None on failure."""
        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                "-v",
                "error",
                "-show_entries",
                "format=duration",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                str(path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            logger.error("ffprobe binary not found: %s", self._binary)
            return None

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except TimeoutError:
            await _kill(proc)
            logger.warning("ffprobe timed out for %s", path.name)
            return None
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        if proc.returncode != 0:
            logger.warning("ffprobe exited %d for %s: %s", proc.returncode, path.name, stderr.decode().strip())
            return None

        raw = stdout.decode().strip()
        try:
            duration = float(raw)
        except ValueError:
            logger.warning("ffprobe reported no duration for %s: %r", path.name, raw)
            return None
        return duration if duration > 0 else None


async def _kill(proc: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        proc.kill()
    await proc.wait()
