"""Pygame screenshot primitive."""

from __future__ import annotations

from .capture import PygameCapture

__all__ = ["PygameCapture"]
