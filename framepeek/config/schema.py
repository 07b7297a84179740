"""Recording options.

Options are validated and defaulted once, when a recording starts, and are
immutable afterwards. Every check runs before any directory or worker exists,
so a bad option never leaves a half-created session behind.
"""

from __future__ import annotations

import math
import os
import time
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from ..recording.formats import SUPPORTED_FORMATS

DEFAULT_FPS = 30
DEFAULT_FFMPEG = "ffmpeg"


def max_threads() -> int:
    """Number of workers the host can run in parallel."""
    return int(os.cpu_count() or 1)


def default_out_dir() -> str:
    return f"recording_{int(time.time())}"


def normalize_out_dir(out_dir: str) -> str:
    """Collapse separators so ``take/`` and ``take`` name the same directory."""
    return os.path.normpath(str(out_dir)).rstrip(os.sep)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


@dataclass(frozen=True)
class RecordOptions:
    """Resolved recording options.

    Attributes:
        n_threads: Number of parallel encode workers
        fps: Framerate handed to the encoder (does not throttle capture)
        out_dir: Frame directory name, relative to storage_root, already unique
        format: Container format name, one of SUPPORTED_FORMATS
        post_clean_frames: Delete frames and their directory after a good encode
        storage_root: Absolute writable root holding frame directories and videos
        ffmpeg: Encoder executable name or path
    """

    n_threads: int
    fps: float
    out_dir: str
    format: str
    post_clean_frames: bool = False
    storage_root: str = ""
    ffmpeg: str = DEFAULT_FFMPEG

    @classmethod
    def resolve(cls, **opts: Any) -> "RecordOptions":
        return resolve_options(opts)

    def with_out_dir(self, out_dir: str) -> "RecordOptions":
        return RecordOptions(
            n_threads=self.n_threads,
            fps=self.fps,
            out_dir=str(out_dir),
            format=self.format,
            post_clean_frames=self.post_clean_frames,
            storage_root=self.storage_root,
            ffmpeg=self.ffmpeg,
        )


def validate_options(opts: Mapping[str, Any]) -> None:
    """Check every supplied (non-None) option.

    Raises:
        TypeError: Unknown option name or wrong value type
        ValueError: Value out of range or not a supported format
    """
    known = {f.name for f in fields(RecordOptions)}
    unknown = sorted(k for k in opts if k not in known)
    if unknown:
        raise TypeError(f"unknown recording option(s): {', '.join(unknown)}")

    n_threads = opts.get("n_threads")
    if n_threads is not None:
        if not isinstance(n_threads, int) or isinstance(n_threads, bool):
            raise TypeError("n_threads must be a positive integer")
        if n_threads < 1:
            raise ValueError("n_threads must be a positive integer")
        limit = max_threads()
        if n_threads > limit:
            raise ValueError(f"n_threads should not be > {limit} max available threads")

    fps = opts.get("fps")
    if fps is not None:
        if not _is_number(fps):
            raise TypeError("fps must be a positive number")
        if not (fps > 0 and math.isfinite(fps)):
            raise ValueError("fps must be a positive number")

    out_dir = opts.get("out_dir")
    if out_dir is not None:
        if not isinstance(out_dir, str):
            raise TypeError("out_dir must be a string")
        if not out_dir.strip():
            raise ValueError("out_dir must not be empty")
        norm = normalize_out_dir(out_dir)
        if norm in ("", os.curdir) or norm == os.pardir or norm.startswith(os.pardir + os.sep):
            raise ValueError(f"out_dir must name a directory inside storage_root, got {out_dir!r}")

    fmt = opts.get("format")
    if fmt is not None:
        if not isinstance(fmt, str):
            raise TypeError("format must be a string")
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"format must be either: {', '.join(SUPPORTED_FORMATS)}")

    clean = opts.get("post_clean_frames")
    if clean is not None and not isinstance(clean, bool):
        raise TypeError("post_clean_frames must be a boolean")

    root = opts.get("storage_root")
    if root is not None and not isinstance(root, str):
        raise TypeError("storage_root must be a string")

    ffmpeg = opts.get("ffmpeg")
    if ffmpeg is not None:
        if not isinstance(ffmpeg, str):
            raise TypeError("ffmpeg must be a string")
        if not ffmpeg.strip():
            raise ValueError("ffmpeg must not be empty")


def resolve_options(opts: Optional[Mapping[str, Any]] = None) -> RecordOptions:
    """Validate ``opts`` and fill in defaults for unset fields."""
    opts = dict(opts or {})
    validate_options(opts)

    def pick(key: str, default: Any) -> Any:
        v = opts.get(key)
        return default if v is None else v

    return RecordOptions(
        n_threads=int(pick("n_threads", max_threads())),
        fps=pick("fps", DEFAULT_FPS),
        out_dir=normalize_out_dir(pick("out_dir", default_out_dir())),
        format=str(pick("format", SUPPORTED_FORMATS[0])),
        post_clean_frames=bool(pick("post_clean_frames", False)),
        storage_root=os.path.abspath(pick("storage_root", os.getcwd())),
        ffmpeg=str(pick("ffmpeg", DEFAULT_FFMPEG)),
    )
