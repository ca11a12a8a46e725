"""FFmpegRenderAdapter — VideoRenderPort implementation using the FFmpeg CLI."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shutil
from collections.abc import Sequence
from pathlib import Path

from autotube.domain.errors import RenderFailure
from autotube.domain.models import TimelineEntry

logger = logging.getLogger(__name__)

_DEFAULT_THREADS: int = 2

# Trailing stderr kept in failure messages
_STDERR_TAIL_CHARS = 600


class FFmpegRenderAdapter:
    """Normalize each cut, concatenate, and lay the narration underneath.

    Every cut is re-encoded to the same size, frame rate, and pixel format
    with its own audio removed, so the concat demuxer can stream-copy the
    result. The narration is muxed in last and is never retimed.
    """

    def __init__(
        self,
        width: int = 1920,
        height: int = 1080,
        fps: int = 30,
        threads: int = _DEFAULT_THREADS,
        binary: str = "ffmpeg",
    ) -> None:
        self._width = width
        self._height = height
        self._fps = fps
        self._threads = threads
        self._binary = binary

    async def render(self, timeline: Sequence[TimelineEntry], audio: Path, output: Path) -> Path:
        if not timeline:
            raise RenderFailure("Timeline must not be empty", reason="empty_input")
        if not audio.exists():
            raise RenderFailure(f"Narration audio not found: {audio}", reason="empty_input")

        parts_dir = output.parent / f"_{output.stem}_parts"
        parts_dir.mkdir(parents=True, exist_ok=True)
        try:
            parts: list[Path] = []
            for i, entry in enumerate(timeline):
                part = parts_dir / f"part_{i:03d}.mp4"
                await self._encode_part(entry, part)
                parts.append(part)

            video_only = parts_dir / "video.mp4"
            await self._concat_files(parts, video_only)
            await self._mux_audio(video_only, audio, output)
        finally:
            await asyncio.to_thread(shutil.rmtree, parts_dir, ignore_errors=True)

        if not output.exists() or output.stat().st_size == 0:
            raise RenderFailure(f"FFmpeg produced no output: {output.name}", reason="encoder")
        logger.info("Rendered %d cuts into %s", len(timeline), output.name)
        return output

    def _video_filter(self) -> str:
        w, h = self._width, self._height
        return (
            f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
            f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2,setsar=1,fps={self._fps}"
        )

    async def _encode_part(self, entry: TimelineEntry, output: Path) -> None:
        """Encode one cut: first ``duration_seconds`` of the clip, no audio."""
        loop_args = ("-stream_loop", "-1") if entry.loop else ()
        await self._run_ffmpeg(
            *loop_args,
            "-i",
            str(entry.path),
            "-t",
            f"{entry.duration_seconds:.3f}",
            "-vf",
            self._video_filter(),
            "-an",
            "-c:v",
            "libx264",
            "-preset",
            "veryfast",
            "-crf",
            "23",
            "-pix_fmt",
            "yuv420p",
            "-threads",
            str(self._threads),
            "-y",
            str(output),
        )

    async def _mux_audio(self, video: Path, audio: Path, output: Path) -> None:
        await self._run_ffmpeg(
            "-i",
            str(video),
            "-i",
            str(audio),
            "-map",
            "0:v:0",
            "-map",
            "1:a:0",
            "-c:v",
            "copy",
            "-c:a",
            "aac",
            "-b:a",
            "192k",
            "-movflags",
            "+faststart",
            "-y",
            str(output),
        )

    @staticmethod
    def _escape_concat_path(path: Path) -> str:
        """Escape a path for FFmpeg concat demuxer (single quotes -> '\\'')."""
        escaped = str(path.resolve()).replace("'", "'\\''")
        return f"file '{escaped}'"

    async def _concat_files(self, files: list[Path], output: Path) -> None:
        list_file = output.parent / f"_concat_{output.stem}.txt"
        list_file.write_text("\n".join(self._escape_concat_path(f) for f in files))
        try:
            await self._run_ffmpeg(
                "-f",
                "concat",
                "-safe",
                "0",
                "-i",
                str(list_file),
                "-c",
                "copy",
                "-y",
                str(output),
            )
        finally:
            list_file.unlink(missing_ok=True)

    async def _run_ffmpeg(self, *args: str) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                "-hide_banner",
                "-loglevel",
                "error",
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise RenderFailure(f"ffmpeg binary not found: {self._binary}", reason="missing_binary") from exc

        try:
            _, stderr = await proc.communicate()
        except asyncio.CancelledError:
            logger.info("Render cancelled, stopping ffmpeg (pid %s)", proc.pid)
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise
        if proc.returncode != 0:
            tail = stderr.decode(errors="replace").strip()[-_STDERR_TAIL_CHARS:]
            raise RenderFailure(f"FFmpeg failed (exit {proc.returncode}): {tail}", reason="encoder")
