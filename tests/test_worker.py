"""Tests for encode workers and the worker pool."""

import os
import threading

import pytest

from conftest import FailingCapture, FakeCapture, GatedEncode
from framepeek.recording.frame import CapturedFrame, FrameJob
from framepeek.recording.worker import Worker, WorkerPool


@pytest.fixture
def pool_factory():
    made = []

    def _make(n, encode):
        pool = WorkerPool(n, encode=encode)
        made.append(pool)
        return pool

    yield _make
    for pool in made:
        pool.close(timeout=5)


def test_ids_are_one_based_and_stable(pool_factory):
    pool = pool_factory(3, GatedEncode())
    assert [w.id for w in pool] == [1, 2, 3]
    assert len(pool) == 3


def test_pool_needs_a_worker():
    with pytest.raises(ValueError):
        WorkerPool(0)


def test_find_idle_scans_in_id_order(pool_factory, tmp_path):
    enc = GatedEncode(open_gate=False)
    pool = pool_factory(3, enc)
    cap = FakeCapture()

    assert pool.find_idle().id == 1
    pool.dispatch(pool.find_idle(), cap, 0, str(tmp_path))
    assert pool.find_idle().id == 2
    pool.dispatch(pool.find_idle(), cap, 1, str(tmp_path))
    pool.dispatch(pool.find_idle(), cap, 2, str(tmp_path))
    assert pool.find_idle() is None
    assert pool.busy_count() == 3

    enc.gate.set()
    assert pool.wait_all(timeout=5)
    assert pool.find_idle().id == 1


def test_success_pushes_sequence_number(pool_factory, tmp_path):
    pool = pool_factory(1, GatedEncode())
    w = pool.find_idle()
    job = pool.dispatch(w, FakeCapture(), 12, str(tmp_path))

    assert job == FrameJob(12, str(tmp_path))
    assert w.wait(5)
    assert pool.poll_completion() == 12
    assert pool.poll_completion() is None
    assert os.path.exists(tmp_path / "0012.png")


def test_dispatch_to_busy_worker_raises(pool_factory, tmp_path):
    enc = GatedEncode(open_gate=False)
    pool = pool_factory(1, enc)
    w = pool.find_idle()
    pool.dispatch(w, FakeCapture(), 0, str(tmp_path))
    assert w.is_running()

    with pytest.raises(RuntimeError, match="busy"):
        pool.dispatch(w, FakeCapture(), 1, str(tmp_path))
    with pytest.raises(RuntimeError, match="busy"):
        w.start(FrameJob(1, str(tmp_path)))

    enc.gate.set()
    assert w.wait(5)
    assert w.jobs_started == 1


def test_encode_error_is_polled_not_completed(pool_factory, tmp_path):
    def broken(frame, path):
        raise OSError("disk full")

    pool = pool_factory(1, broken)
    w = pool.find_idle()
    pool.dispatch(w, FakeCapture(), 3, str(tmp_path))
    assert w.wait(5)

    errors = pool.poll_errors(w)
    assert len(errors) == 1
    err = errors[0]
    assert (err.worker_id, err.sequence) == (1, 3)
    assert isinstance(err.error, OSError)
    assert "frame 3" in str(err)
    assert pool.poll_errors(w) == []
    assert pool.poll_completion() is None

    # The worker is reusable after a failure.
    assert not w.is_running()


def test_failed_capture_leaves_worker_idle(pool_factory, tmp_path):
    pool = pool_factory(1, GatedEncode())
    w = pool.find_idle()
    with pytest.raises(RuntimeError, match="no frame"):
        pool.dispatch(w, FailingCapture(), 0, str(tmp_path))
    assert not w.is_running()
    assert w.jobs_started == 0


def test_stale_frame_is_dropped_before_capture(pool_factory, tmp_path):
    pool = pool_factory(1, GatedEncode())
    w = pool.find_idle()
    w.channel.put_nowait(CapturedFrame(1, 1, b"\x00\x00\x00"))
    pool.dispatch(w, FakeCapture(width=2, height=2), 0, str(tmp_path))
    assert w.wait(5)
    assert pool.poll_completion() == 0


def test_frame_can_arrive_after_job(tmp_path):
    """The worker blocks on its channel until the capture is delivered."""
    import queue

    completions = queue.Queue()
    enc = GatedEncode()
    w = Worker(1, completions, encode=enc)
    try:
        w.start(FrameJob(0, str(tmp_path)))
        assert w.is_running()
        assert not w.wait(0.05)
        w.channel.put(CapturedFrame(1, 1, b"\x01\x02\x03"))
        assert w.wait(5)
        assert completions.get(timeout=5) == 0
    finally:
        w.close(timeout=5)


def test_wait_any_returns_first_freed_worker(pool_factory, tmp_path):
    gates = {}

    def per_file_gate(frame, path):
        gates[os.path.basename(path)].wait(10)

    for name in ("0000.png", "0001.png"):
        gates[name] = threading.Event()

    pool = pool_factory(2, per_file_gate)
    cap = FakeCapture()
    pool.dispatch(pool.workers[0], cap, 0, str(tmp_path))
    pool.dispatch(pool.workers[1], cap, 1, str(tmp_path))

    gates["0001.png"].set()
    freed = pool.wait_any()
    assert freed.id == 2
    assert pool.workers[0].is_running()

    gates["0000.png"].set()
    assert pool.wait_first().id == 1
    assert not pool.workers[0].is_running()


def test_close_lets_in_flight_job_finish(tmp_path):
    pool = WorkerPool(1, encode=GatedEncode())
    w = pool.find_idle()
    pool.dispatch(w, FakeCapture(), 0, str(tmp_path))
    pool.close(timeout=5)
    assert (tmp_path / "0000.png").exists()
    assert pool.poll_completion() == 0
