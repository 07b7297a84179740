"""Record a real-time render loop to a PNG sequence and an ffmpeg video.

Typical use inside a pygame loop::

    from framepeek import Recorder
    from framepeek.backends.pygame import PygameCapture

    rec = Recorder(PygameCapture())
    rec.start(n_threads=4, fps=60, format="mp4", post_clean_frames=True)
    while running:
        dt = clock.tick(60) / 1000.0
        draw(screen)
        rec.update(dt)
        pygame.display.flip()
    rec.stop(finalize=True)
"""

from __future__ import annotations

from .config import RecordOptions, load_options_file, resolve_options
from .core import Recorder
from .io import SaveDirectory, unique_path
from .recording import CapturedFrame, WorkerError
from .recording.finalizer import FinalizeResult

__version__ = "0.1.0"

__all__ = [
    "CapturedFrame",
    "FinalizeResult",
    "RecordOptions",
    "Recorder",
    "SaveDirectory",
    "WorkerError",
    "load_options_file",
    "resolve_options",
    "unique_path",
]
