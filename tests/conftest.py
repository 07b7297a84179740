"""Shared pytest fixtures for the framepeek test suite."""

import os
import subprocess
import sys
import threading
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from framepeek.config import schema  # noqa: E402
from framepeek.core import Recorder  # noqa: E402
from framepeek.recording.frame import CapturedFrame, encode_png  # noqa: E402


# =============================================================================
# Fakes
# =============================================================================

class FakeCapture:
    """Screenshot primitive producing tiny solid-color RGB frames."""

    def __init__(self, width: int = 4, height: int = 3):
        self.width = width
        self.height = height
        self.calls = 0

    def capture(self, channel):
        self.calls += 1
        shade = bytes([(self.calls * 37) % 256, 0, 0])
        channel.put_nowait(CapturedFrame(self.width, self.height, shade * (self.width * self.height)))


class FailingCapture:
    def __init__(self):
        self.calls = 0

    def capture(self, channel):
        self.calls += 1
        raise RuntimeError("no frame rendered yet")


class GatedEncode:
    """PNG writer that holds every job until ``gate`` is set."""

    def __init__(self, open_gate: bool = True):
        self.gate = threading.Event()
        if open_gate:
            self.gate.set()
        self.entered = threading.Semaphore(0)
        self.paths = []
        self._lock = threading.Lock()

    def __call__(self, frame, path):
        self.entered.release()
        if not self.gate.wait(10):
            raise TimeoutError("gate never opened")
        encode_png(frame, path)
        with self._lock:
            self.paths.append(path)


class FakeRunner:
    """Stands in for subprocess.run; writes the output file on success."""

    def __init__(self, returncode: int = 0, stderr: bytes = b""):
        self.returncode = returncode
        self.stderr = stderr
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((list(cmd), kwargs))
        if self.returncode == 0:
            out = os.path.join(kwargs["cwd"], cmd[-1])
            with open(out, "wb") as f:
                f.write(b"video")
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=None, stderr=self.stderr)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def plenty_of_cpus(monkeypatch):
    """Let thread-count validation accept small pools on single-core runners."""
    monkeypatch.setattr(schema, "max_threads", lambda: 16)


@pytest.fixture
def storage_root(tmp_path) -> str:
    root = tmp_path / "save"
    root.mkdir()
    return str(root)


@pytest.fixture
def fake_capture() -> FakeCapture:
    return FakeCapture()


@pytest.fixture
def make_recorder():
    """Factory for recorders that are always closed at teardown."""
    made = []

    def _make(capture=None, **kwargs):
        kwargs.setdefault("system", "Linux")
        kwargs.setdefault("runner", FakeRunner())
        rec = Recorder(capture if capture is not None else FakeCapture(), **kwargs)
        made.append(rec)
        return rec

    yield _make
    for rec in made:
        rec.close()
