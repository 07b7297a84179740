from __future__ import annotations

# Host filesystem access for the frame directory and the finished video.

from .storage import SaveDirectory, unique_path  # noqa: F401
