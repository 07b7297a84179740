"""Per-tick frame dispatch.

The host calls :meth:`FrameScheduler.tick` once per rendered frame. A tick
captures at most one frame and hands it to an idle worker; capture is driven
by ticks, not by elapsed time. The only blocking call is the wait for a free
worker when the whole pool is busy.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Set

from .base import CaptureSource
from .frame import FrameJob
from .worker import Worker, WorkerError, WorkerPool

logger = logging.getLogger(__name__)

ErrorListener = Callable[[WorkerError], None]

WAIT_ANY = "any"
WAIT_FIRST = "first"
WAIT_POLICIES = (WAIT_ANY, WAIT_FIRST)


class FrameScheduler:
    """Dispatches captured frames to a WorkerPool and tracks completions.

    Sequence numbers come from a dispatch cursor that advances only when a job
    was actually handed to a worker, so frame files are named 0000, 0001, ...
    in dispatch order without gaps or collisions. Completions are tracked by
    the sequence number each worker reports; ``completed_frames`` counts
    distinct frames written to disk.
    """

    def __init__(
        self,
        pool: WorkerPool,
        capture: CaptureSource,
        out_dir: str,
        wait_policy: str = WAIT_ANY,
    ):
        if wait_policy not in WAIT_POLICIES:
            raise ValueError(f"wait_policy must be one of: {', '.join(WAIT_POLICIES)}")
        self.pool = pool
        self.capture = capture
        self.out_dir = str(out_dir)
        self.wait_policy = wait_policy

        self.timer = 0.0
        self.next_sequence = 0
        self.stalls = 0
        self.failed_frames = 0
        self._completed: Set[int] = set()
        self._listeners: List[ErrorListener] = []

    @property
    def dispatched(self) -> int:
        return self.next_sequence

    @property
    def completed_frames(self) -> int:
        return len(self._completed)

    def is_complete(self, sequence: int) -> bool:
        return int(sequence) in self._completed

    def subscribe(self, listener: ErrorListener) -> Callable[[], None]:
        """Register ``listener`` for worker errors; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def tick(self, dt: float) -> Optional[FrameJob]:
        """Run one scheduling step.

        Returns the job dispatched on this tick, or None when the pool was
        saturated or the capture failed. Never raises for per-frame failures.
        """
        self.timer += float(dt)

        for w in self.pool:
            for err in self.pool.poll_errors(w):
                self._report(err)

        job: Optional[FrameJob] = None
        worker = self.pool.find_idle()
        if worker is not None:
            job = self._dispatch(worker)
        else:
            self.stalls += 1
            logger.debug("[record] all %d workers busy; waiting (policy=%s)", len(self.pool), self.wait_policy)
            if self.wait_policy == WAIT_FIRST:
                self.pool.wait_first()
            else:
                self.pool.wait_any()

        self.poll_completions()
        return job

    def poll_completions(self) -> int:
        """Drain the completion queue without blocking; returns frames newly completed."""
        added = 0
        while True:
            seq = self.pool.poll_completion()
            if seq is None:
                return added
            if seq in self._completed:
                logger.warning("[record] frame %d reported complete twice", seq)
                continue
            self._completed.add(seq)
            added += 1

    def _dispatch(self, worker: Worker) -> Optional[FrameJob]:
        seq = self.next_sequence
        try:
            job = self.pool.dispatch(worker, self.capture, seq, self.out_dir)
        except Exception as e:
            self._report(WorkerError(worker.id, seq, e))
            return None
        self.next_sequence += 1
        return job

    def _report(self, err: WorkerError) -> None:
        self.failed_frames += 1
        logger.error("[record] %s", err)
        for listener in list(self._listeners):
            try:
                listener(err)
            except Exception:
                logger.exception("[record] error listener failed")
