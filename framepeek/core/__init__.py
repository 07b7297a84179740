from __future__ import annotations

from .session import FINALIZING, IDLE, RECORDING, Recorder, active_recorder

__all__ = ["Recorder", "active_recorder", "IDLE", "RECORDING", "FINALIZING"]
