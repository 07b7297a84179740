from __future__ import annotations

import argparse
import logging
import math
from typing import Any, Dict, Optional, Tuple

import pygame

from .backends.pygame import PygameCapture
from .config import load_options_file
from .core import Recorder
from .logging_setup import setup_logging
from .recording.encoder import check_ffmpeg
from .recording.formats import list_formats
from .recording.utils import print_recording_progress

logger = logging.getLogger(__name__)


def _parse_size(s: str) -> Tuple[int, int]:
    try:
        w, h = (int(v) for v in str(s).lower().split("x", 1))
    except ValueError:
        raise argparse.ArgumentTypeError(f"size must look like 1280x720, got {s!r}")
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError("size must be positive")
    return w, h


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="framepeek.record", description="Record a demo pygame scene to PNG frames and a video")

    g_cfg = ap.add_argument_group("Config")
    g_cfg.add_argument("--config", type=str, default=None, help="JSONC file with recording options (root or 'record' section)")

    g_rec = ap.add_argument_group("Record")
    g_rec.add_argument("--threads", type=int, default=None, help="Parallel PNG encode workers (default: all CPUs)")
    g_rec.add_argument("--fps", type=float, default=None, help="Video framerate handed to ffmpeg (default: 30)")
    g_rec.add_argument("--out_dir", type=str, default=None, help="Frame directory name, made unique (default: recording_<time>)")
    g_rec.add_argument("--format", type=str, default=None, choices=list_formats())
    g_rec.add_argument("--storage_root", type=str, default=None, help="Directory holding frame directories and videos (default: cwd)")
    g_rec.add_argument("--clean", action="store_true", default=None, help="Delete frames after a successful encode")
    g_rec.add_argument("--no_finalize", action="store_true", help="Keep the PNG sequence only; do not run ffmpeg")
    g_rec.add_argument("--wait_policy", type=str, default="any", choices=["any", "first"],
                       help="When all workers are busy, wait for any worker or for worker #1")

    g_scene = ap.add_argument_group("Scene")
    g_scene.add_argument("--size", type=_parse_size, default=(640, 360), help="Scene size WxH")
    g_scene.add_argument("--frames", type=int, default=None, help="Number of frames to render")
    g_scene.add_argument("--duration", type=float, default=5.0, help="Seconds to render when --frames is not given")
    g_scene.add_argument("--headless", action="store_true", help="Render off-screen as fast as possible")
    g_scene.add_argument("--log_interval", type=float, default=1.0, help="Seconds between progress lines (0 disables)")

    g_log = ap.add_argument_group("Logging")
    g_log.add_argument("--quiet", action="store_true")
    g_log.add_argument("--basic_debug", action="store_true")
    g_log.add_argument("--log_file", type=str, default=None)
    return ap


def collect_options(args: Any) -> Dict[str, Any]:
    """Merge the config file with CLI flags; flags win."""
    opts: Dict[str, Any] = {}
    if args.config:
        try:
            opts.update(load_options_file(str(args.config)))
        except (OSError, ValueError) as e:
            raise SystemExit(f"Failed to load config: {args.config} ({e})")

    for key, flag in (
        ("n_threads", "threads"),
        ("fps", "fps"),
        ("out_dir", "out_dir"),
        ("format", "format"),
        ("storage_root", "storage_root"),
        ("post_clean_frames", "clean"),
    ):
        v = getattr(args, flag, None)
        if v is not None:
            opts[key] = v
    if isinstance(opts.get("fps"), float) and float(opts["fps"]).is_integer():
        opts["fps"] = int(opts["fps"])
    return opts


def draw_scene(surface: pygame.Surface, t: float) -> None:
    w, h = surface.get_size()
    surface.fill((18, 20, 28))
    cx, cy = w * 0.5, h * 0.5
    r = min(w, h) * 0.35
    ang = t * 1.7
    x2 = cx + math.cos(ang) * r
    y2 = cy + math.sin(ang) * r
    pygame.draw.line(surface, (230, 230, 240), (cx - (x2 - cx), cy - (y2 - cy)), (x2, y2), 4)
    bx = (0.5 + 0.45 * math.sin(t * 0.9)) * w
    by = (0.5 + 0.4 * math.cos(t * 1.3)) * h
    pygame.draw.circle(surface, (90, 200, 255), (int(bx), int(by)), max(4, int(min(w, h) * 0.05)))


def open_screen(size: Tuple[int, int], headless: bool) -> pygame.Surface:
    if headless:
        return pygame.Surface(size)
    screen = pygame.display.set_mode(size)
    pygame.display.set_caption("framepeek demo")
    return screen


def run_scene(
    recorder: Recorder,
    screen: pygame.Surface,
    fps: float,
    frames: Optional[int],
    duration: float,
    headless: bool,
    log_interval: float,
) -> int:
    """Render the demo scene, feeding every frame to ``recorder``. Returns frames rendered."""
    target = int(frames) if frames is not None else max(1, int(round(float(duration) * float(fps))))
    clock = pygame.time.Clock()
    t = 0.0
    last_log = -1e9
    n = 0
    while n < target:
        if headless:
            dt = 1.0 / float(fps)
        else:
            dt = clock.tick(max(1, int(round(float(fps))))) / 1000.0
            stop = False
            for ev in pygame.event.get():
                if ev.type == pygame.QUIT or (ev.type == pygame.KEYDOWN and ev.key == pygame.K_ESCAPE):
                    stop = True
            if stop:
                break

        draw_scene(screen, t)
        recorder.update(dt)
        if not headless:
            pygame.display.flip()
        t += dt
        n += 1

        if log_interval > 0.0 and (t - last_log) >= log_interval:
            last_log = t
            pool = recorder.pool
            print_recording_progress(
                recorder.elapsed(),
                recorder.frames_dispatched(),
                recorder.current_frame(),
                pool.busy_count() if pool is not None else 0,
                len(pool) if pool is not None else 0,
                target_frames=target,
            )
    if log_interval > 0.0:
        print("", flush=True)
    return n


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args)

    opts = collect_options(args)
    finalize = not bool(args.no_finalize)
    if finalize and not check_ffmpeg(str(opts.get("ffmpeg") or "ffmpeg")):
        raise SystemExit("ERROR: ffmpeg not found. Install ffmpeg or pass --no_finalize.\n"
                         "Install: https://ffmpeg.org/download.html")

    pygame.init()

    screen = open_screen(args.size, bool(args.headless))
    recorder = Recorder(PygameCapture(screen), wait_policy=str(args.wait_policy))
    try:
        resolved = recorder.start(opts)
    except (TypeError, ValueError) as e:
        pygame.quit()
        raise SystemExit(f"Invalid recording options: {e}")

    failures = []
    recorder.subscribe(failures.append)

    interrupted = False
    try:
        try:
            rendered = run_scene(
                recorder,
                screen=screen,
                fps=float(resolved.fps),
                frames=args.frames,
                duration=float(args.duration),
                headless=bool(args.headless),
                log_interval=float(args.log_interval or 0.0),
            )
            logger.info("[record] rendered %d frames (%d failed)", rendered, len(failures))
        except KeyboardInterrupt:
            interrupted = True
            logger.warning("[record] interrupted; finalizing what was captured")
    finally:
        result = recorder.stop(finalize=finalize)
        recorder.close(wait=True)
        pygame.quit()

    if not finalize:
        print(f"[record] frames kept in {recorder.output_path()}")
        return 0
    if result is None or not result.ok:
        print(f"[record] video creation failed: {result.reason if result else 'unknown'}")
        return 1
    print(f"[record] video: {result.video_path}" + (" (interrupted)" if interrupted else ""))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
