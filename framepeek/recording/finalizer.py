"""Turns a finished frame directory into a video and optionally cleans up."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..io.storage import SaveDirectory
from .encoder import UnsupportedPlatformError, encoder_for_platform
from .formats import get_format

if TYPE_CHECKING:
    from ..config.schema import RecordOptions

logger = logging.getLogger(__name__)

Runner = Callable[..., "subprocess.CompletedProcess[Any]"]


@dataclass(frozen=True)
class FinalizeResult:
    """Outcome of one finalize call.

    Attributes:
        ok: ffmpeg ran and exited with status 0
        video_path: Absolute path of the video (set even when encoding failed)
        returncode: ffmpeg exit status, None when it never ran
        cleaned: Frame files and directory were removed
        reason: Short failure description, empty on success
    """

    ok: bool
    video_path: Optional[str] = None
    returncode: Optional[int] = None
    cleaned: bool = False
    reason: str = ""


class Finalizer:
    """Runs ffmpeg over ``<out_dir>/%04d.png`` synchronously."""

    def __init__(self, storage: SaveDirectory, system: Optional[str] = None, runner: Runner = subprocess.run):
        self.storage = storage
        self.system = system
        self.runner = runner

    def finalize(self, options: "RecordOptions") -> FinalizeResult:
        fmt = get_format(options.format)
        if fmt is None:
            raise ValueError(f"unsupported format: {options.format}")

        try:
            encoder = encoder_for_platform(self.system, options.ffmpeg)
        except UnsupportedPlatformError as e:
            logger.error("[finalize] %s; no video created", e)
            return FinalizeResult(ok=False, reason=str(e))

        frame_dir = self.storage.full_path(options.out_dir)
        video_rel = self.storage.unique_path(options.out_dir, fmt.extension)
        video_path = self.storage.full_path(video_rel)
        cmd = encoder.build(options.fps, fmt, os.path.relpath(video_path, frame_dir))
        logger.info("[finalize] running: %s (cwd=%s)", " ".join(cmd), frame_dir)

        try:
            proc = self.runner(
                cmd,
                cwd=frame_dir,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                **encoder.popen_kwargs(),
            )
        except OSError as e:
            logger.error("[finalize] Video creation status: PROBLEM ENCOUNTERED (could not run %s: %s)", cmd[0], e)
            return FinalizeResult(ok=False, video_path=video_path, reason=f"could not run {cmd[0]}: {e}")

        returncode = int(proc.returncode)
        if returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="ignore") if isinstance(proc.stderr, bytes) else str(proc.stderr or "")
            logger.error(
                "[finalize] Video creation status: PROBLEM ENCOUNTERED (exit=%d) %s",
                returncode,
                stderr.strip(),
            )
            return FinalizeResult(ok=False, video_path=video_path, returncode=returncode, reason=f"ffmpeg exited with {returncode}")

        logger.info("[finalize] Video creation status: OK (%s)", video_path)

        cleaned = False
        if options.post_clean_frames:
            cleaned = self.clean_frames(options.out_dir)
        return FinalizeResult(ok=True, video_path=video_path, returncode=returncode, cleaned=cleaned)

    def clean_frames(self, out_dir: str) -> bool:
        """Delete every file in ``out_dir`` and then the directory itself."""
        logger.info("[finalize] cleaning: %s", out_dir)
        for name in self.storage.list_dir(out_dir):
            self.storage.remove(os.path.join(out_dir, name))
        removed = self.storage.remove(out_dir)
        logger.info("[finalize] removed dir: %s", removed)
        return removed
