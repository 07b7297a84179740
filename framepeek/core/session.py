"""Recording session lifecycle.

A :class:`Recorder` is embedded in the host's render loop: ``start`` once,
``update(dt)`` every rendered frame, ``stop`` when done. Only one recording
may be live in a process at a time; the guard is explicit and released by
``stop``.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import asdict
from typing import Any, Callable, List, Mapping, Optional, Union

from ..config.schema import RecordOptions, resolve_options
from ..io.storage import SaveDirectory
from ..recording.base import CaptureSource
from ..recording.finalizer import FinalizeResult, Finalizer, Runner
from ..recording.frame import FrameJob, encode_png
from ..recording.scheduler import WAIT_ANY, ErrorListener, FrameScheduler
from ..recording.worker import EncodeFn, WorkerPool

logger = logging.getLogger(__name__)

IDLE = "idle"
RECORDING = "recording"
FINALIZING = "finalizing"

_active_lock = threading.Lock()
_active: Optional["Recorder"] = None


def active_recorder() -> Optional["Recorder"]:
    """The recorder currently holding the process-wide session, if any."""
    return _active


def _claim(recorder: "Recorder") -> None:
    global _active
    with _active_lock:
        if _active is not None and _active is not recorder:
            raise RuntimeError("another recording is already running in this process")
        _active = recorder


def _release(recorder: "Recorder") -> None:
    global _active
    with _active_lock:
        if _active is recorder:
            _active = None


class Recorder:
    """Owns one recording session at a time.

    Args:
        capture: Screenshot primitive used on every dispatching tick
        encode: Frame writer run on the worker threads
        wait_policy: What a tick does when every worker is busy: ``"any"``
            waits for whichever worker frees up first, ``"first"`` waits on
            worker #1
        system: Operating system name used to shape the ffmpeg call; the
            running one when None
        runner: ``subprocess.run`` compatible callable for the ffmpeg call
    """

    def __init__(
        self,
        capture: CaptureSource,
        *,
        encode: EncodeFn = encode_png,
        wait_policy: str = WAIT_ANY,
        system: Optional[str] = None,
        runner: Runner = subprocess.run,
    ):
        self.capture = capture
        self.encode = encode
        self.wait_policy = wait_policy
        self.system = system
        self.runner = runner

        self.state = IDLE
        self.options: Optional[RecordOptions] = None
        self.storage: Optional[SaveDirectory] = None
        self.pool: Optional[WorkerPool] = None
        self.scheduler: Optional[FrameScheduler] = None
        self.last_result: Optional[FinalizeResult] = None
        self._listeners: List[ErrorListener] = []

    # ------------------------------ Control ------------------------------ #
    def start(self, options: Union[RecordOptions, Mapping[str, Any], None] = None, **opts: Any) -> RecordOptions:
        """Validate options, create the frame directory and the workers.

        Raises:
            TypeError, ValueError: Invalid option; nothing has been created
            RuntimeError: A recording is already running
        """
        if self.state != IDLE:
            raise RuntimeError("recording already started; call stop() first")
        if isinstance(options, RecordOptions):
            raw = {**asdict(options), **opts}
        elif options is None or isinstance(options, Mapping):
            raw = {**dict(options or {}), **opts}
        else:
            raise TypeError("options must be a RecordOptions or a mapping")
        resolved = resolve_options(raw)

        _claim(self)
        try:
            storage = SaveDirectory(resolved.storage_root)
            out_dir = storage.unique_path(resolved.out_dir)
            storage.make_dir(out_dir)
            resolved = resolved.with_out_dir(out_dir)

            if self.pool is not None:
                self.pool.close()
            pool = WorkerPool(resolved.n_threads, encode=self.encode)
        except BaseException:
            _release(self)
            raise

        scheduler = FrameScheduler(pool, self.capture, storage.full_path(out_dir), wait_policy=self.wait_policy)
        for listener in self._listeners:
            scheduler.subscribe(listener)

        self.options = resolved
        self.storage = storage
        self.pool = pool
        self.scheduler = scheduler
        self.last_result = None
        self.state = RECORDING
        logger.info(
            "[record] start (dir=%s, threads=%d, fps=%s, format=%s, clean=%s)",
            storage.full_path(out_dir),
            resolved.n_threads,
            resolved.fps,
            resolved.format,
            resolved.post_clean_frames,
        )
        return resolved

    def stop(self, finalize: bool = False) -> Optional[FinalizeResult]:
        """End the recording; with ``finalize`` also build the video.

        Without finalize nothing else happens: frames stay on disk and jobs
        already handed to workers finish on their own. With finalize the call
        waits for those jobs, runs ffmpeg and, if it succeeded and the option
        is set, removes the frames. Only a live recording is finalized; calling
        it again afterwards returns None and leaves the video alone.
        """
        if not isinstance(finalize, bool):
            raise TypeError("finalize must be a boolean")
        was_recording = self.state == RECORDING
        self.state = IDLE
        _release(self)
        if not was_recording:
            if finalize:
                logger.warning("[record] stop(finalize=True) ignored; no recording is running")
            return None
        if self.scheduler is not None:
            logger.info(
                "[record] stop (dispatched=%d, written=%d, failed=%d, stalls=%d, finalize=%s)",
                self.scheduler.dispatched,
                self.scheduler.completed_frames,
                self.scheduler.failed_frames,
                self.scheduler.stalls,
                finalize,
            )
        if not finalize or self.options is None or self.storage is None:
            return None

        self.state = FINALIZING
        try:
            if self.pool is not None:
                self.pool.wait_all()
            if self.scheduler is not None:
                self.scheduler.poll_completions()
            result = Finalizer(self.storage, system=self.system, runner=self.runner).finalize(self.options)
        finally:
            self.state = IDLE
        self.last_result = result
        return result

    def update(self, dt: float) -> Optional[FrameJob]:
        """Per-frame hook for the host loop. Never raises."""
        if self.state != RECORDING or self.scheduler is None:
            return None
        try:
            return self.scheduler.tick(dt)
        except Exception:
            logger.exception("[record] tick failed")
            return None

    def close(self, wait: bool = False) -> None:
        """Shut the worker threads down; a live recording is stopped first.

        With ``wait`` the frames already handed to workers are written first.
        """
        if self.state == RECORDING:
            self.stop(False)
        if self.pool is not None:
            if wait:
                self.pool.wait_all()
            self.pool.close()
            self.pool = None

    def subscribe(self, listener: ErrorListener) -> Callable[[], None]:
        """Receive every WorkerError of this and later sessions."""
        self._listeners.append(listener)
        unsub_current = self.scheduler.subscribe(listener) if self.scheduler is not None else None

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
            if unsub_current is not None:
                unsub_current()

        return _unsubscribe

    # ------------------------------ Status ------------------------------- #
    def status(self) -> bool:
        return self.state == RECORDING

    def current_frame(self) -> int:
        if self.scheduler is None:
            return 0
        return self.scheduler.completed_frames

    def frames_dispatched(self) -> int:
        return self.scheduler.dispatched if self.scheduler is not None else 0

    def elapsed(self) -> float:
        return self.scheduler.timer if self.scheduler is not None else 0.0

    def output_path(self) -> Optional[str]:
        """Absolute path of the frame directory, None before the first start."""
        if self.options is None or self.storage is None:
            return None
        return self.storage.full_path(self.options.out_dir)
