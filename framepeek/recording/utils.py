from __future__ import annotations

from typing import Optional


def format_progress(
    elapsed: float,
    dispatched: int,
    completed: int,
    busy: int,
    n_workers: int,
    target_frames: Optional[int] = None,
) -> str:
    """One status line for a running recording."""
    if target_frames:
        ratio = min(1.0, max(0.0, float(dispatched) / float(target_frames)))
        head = f"[record] {ratio*100:6.2f}%"
    else:
        head = "[record]"
    return (
        f"{head}  frame={int(dispatched):7d}  written={int(completed):7d}"
        f"  busy={int(busy)}/{int(n_workers)}  t={float(elapsed):.3f}s"
    )


def print_recording_progress(*args, **kwargs) -> None:
    """Print recording progress to stdout, overwriting the current line."""
    print("\r" + format_progress(*args, **kwargs) + " " * 8, end="", flush=True)
