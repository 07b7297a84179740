from __future__ import annotations

import queue
from typing import Optional

import pygame

from ...recording.frame import CapturedFrame


class PygameCapture:
    """Screenshot primitive for a pygame render loop.

    Grabs ``surface`` (the display surface when None) as raw RGB bytes. Call
    the recorder's ``update`` after drawing and before ``pygame.display.flip``
    or right after it; either way the grabbed frame is the one just rendered.
    """

    def __init__(self, surface: Optional[pygame.Surface] = None):
        self.surface = surface

    def _target(self) -> pygame.Surface:
        surface = self.surface if self.surface is not None else pygame.display.get_surface()
        if surface is None:
            raise RuntimeError("no pygame display surface to capture")
        return surface

    def capture(self, channel: "queue.Queue") -> None:
        surface = self._target()
        w, h = surface.get_size()
        # tostring is far cheaper than surfarray + transpose on the tick thread.
        frame_bytes = pygame.image.tostring(surface, "RGB")
        channel.put_nowait(CapturedFrame(width=int(w), height=int(h), pixels=frame_bytes))
