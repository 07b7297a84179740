"""
Parallel PNG encode workers.

Each Worker owns one long-lived thread and a single-slot channel through which
the host's screenshot primitive delivers a frame. A worker handles at most one
job at a time, enforced by the busy flag. Pillow releases the GIL
while compressing, so encodes on different workers overlap.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

from .base import CaptureSource
from .frame import CapturedFrame, FrameJob, encode_png

logger = logging.getLogger(__name__)

EncodeFn = Callable[[CapturedFrame, str], None]


@dataclass(frozen=True)
class WorkerError:
    """Failure of one frame job, surfaced to the scheduler by polling."""

    worker_id: int
    sequence: int
    error: Exception

    def __str__(self) -> str:
        return f"worker {self.worker_id} failed on frame {self.sequence}: {self.error!r}"


class Worker:
    """One encode unit, reused for every frame of a recording."""

    def __init__(
        self,
        worker_id: int,
        completions: "queue.Queue[int]",
        encode: EncodeFn = encode_png,
        on_idle: Optional[Callable[[], None]] = None,
    ):
        self.id = int(worker_id)
        self.channel: "queue.Queue[CapturedFrame]" = queue.Queue(maxsize=1)
        self.jobs_started = 0

        self._completions = completions
        self._encode = encode
        self._on_idle = on_idle
        self._jobs: "queue.Queue[Optional[FrameJob]]" = queue.Queue()
        self._errors: "queue.Queue[WorkerError]" = queue.Queue()
        self._idle = threading.Event()
        self._idle.set()

        self._thread = threading.Thread(target=self._run, name=f"framepeek-worker-{self.id}", daemon=True)
        self._thread.start()

    def __repr__(self) -> str:
        return f"Worker(id={self.id}, running={self.is_running()})"

    def is_running(self) -> bool:
        """True from start() until the job has been written or has failed."""
        return not self._idle.is_set()

    def start(self, job: FrameJob) -> None:
        """
        Hand a job to the worker thread.

        Raises:
            RuntimeError: If the worker still has a job in flight
        """
        if self.is_running():
            raise RuntimeError(f"worker {self.id} is busy")
        self._idle.clear()
        self.jobs_started += 1
        self._jobs.put_nowait(job)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the current job finishes. Returns False on timeout."""
        return self._idle.wait(timeout)

    def poll_errors(self) -> List[WorkerError]:
        """Return the errors raised since the last poll."""
        errors: List[WorkerError] = []
        while True:
            try:
                errors.append(self._errors.get_nowait())
            except queue.Empty:
                return errors

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop the thread once any in-flight job is done.

        With ``timeout=None`` this returns immediately; the job already handed
        over still runs to completion on its own.
        """
        self._jobs.put_nowait(None)
        if timeout is not None:
            self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            job = self._jobs.get()
            if job is None:
                return
            try:
                frame = self.channel.get()
                self._encode(frame, job.path)
            except Exception as e:
                logger.debug("[worker %d] frame %d failed: %r", self.id, job.sequence, e)
                self._errors.put(WorkerError(self.id, job.sequence, e))
            else:
                self._completions.put(job.sequence)
            finally:
                self._idle.set()
                if self._on_idle is not None:
                    self._on_idle()


class WorkerPool:
    """Fixed set of workers sharing one completion queue."""

    def __init__(self, n_workers: int, encode: EncodeFn = encode_png):
        if int(n_workers) < 1:
            raise ValueError("a worker pool needs at least one worker")
        self.completions: "queue.Queue[int]" = queue.Queue()
        self._idle_cond = threading.Condition()
        self.workers: List[Worker] = [
            Worker(i, self.completions, encode=encode, on_idle=self._notify_idle)
            for i in range(1, int(n_workers) + 1)
        ]

    def __len__(self) -> int:
        return len(self.workers)

    def __iter__(self) -> Iterator[Worker]:
        return iter(self.workers)

    def _notify_idle(self) -> None:
        with self._idle_cond:
            self._idle_cond.notify_all()

    def find_idle(self) -> Optional[Worker]:
        for w in self.workers:
            if not w.is_running():
                return w
        return None

    def busy_count(self) -> int:
        return sum(1 for w in self.workers if w.is_running())

    def dispatch(self, worker: Worker, capture: CaptureSource, sequence: int, out_dir: str) -> FrameJob:
        """
        Capture the current frame into ``worker``'s channel and start its job.

        Raises:
            RuntimeError: If ``worker`` is busy
            Exception: Whatever the capture primitive raised; the worker is
                left idle in that case
        """
        if worker.is_running():
            raise RuntimeError(f"worker {worker.id} is busy")
        # A frame left over from a failed dispatch would be paired with the wrong job.
        while True:
            try:
                worker.channel.get_nowait()
            except queue.Empty:
                break
        capture.capture(worker.channel)
        job = FrameJob(int(sequence), str(out_dir))
        worker.start(job)
        return job

    def poll_errors(self, worker: Worker) -> List[WorkerError]:
        return worker.poll_errors()

    def poll_completion(self) -> Optional[int]:
        """Pop one completed sequence number without blocking."""
        try:
            return self.completions.get_nowait()
        except queue.Empty:
            return None

    def wait_any(self) -> Worker:
        """Block until some worker is idle and return the first idle one."""
        with self._idle_cond:
            self._idle_cond.wait_for(lambda: self.find_idle() is not None)
        worker = self.find_idle()
        # Only the tick thread dispatches, so an idle worker stays idle here.
        assert worker is not None
        return worker

    def wait_first(self) -> Worker:
        """Block on worker #1 specifically, whatever the others are doing."""
        first = self.workers[0]
        first.wait()
        return first

    def wait_all(self, timeout: Optional[float] = None) -> bool:
        """Block until every worker is idle. Returns False on timeout."""
        with self._idle_cond:
            return self._idle_cond.wait_for(lambda: self.busy_count() == 0, timeout)

    def close(self, timeout: Optional[float] = None) -> None:
        for w in self.workers:
            w.close(timeout)
