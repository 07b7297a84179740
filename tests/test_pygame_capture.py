"""Tests for the pygame screenshot primitive."""

import queue

import pygame
import pytest

from framepeek.backends.pygame import PygameCapture


def test_captures_surface_as_rgb_bytes():
    surf = pygame.Surface((3, 2))
    surf.fill((10, 20, 30))
    surf.set_at((0, 0), (255, 0, 0))

    channel = queue.Queue(maxsize=1)
    PygameCapture(surf).capture(channel)
    frame = channel.get_nowait()

    assert (frame.width, frame.height, frame.mode) == (3, 2, "RGB")
    assert len(frame.pixels) == 3 * 2 * 3
    assert frame.pixels[:3] == bytes([255, 0, 0])
    assert frame.pixels[3:6] == bytes([10, 20, 30])
    img = frame.to_image()
    assert img.getpixel((0, 0)) == (255, 0, 0)


def test_capture_without_display_surface(monkeypatch):
    monkeypatch.setattr(pygame.display, "get_surface", lambda: None)
    with pytest.raises(RuntimeError):
        PygameCapture().capture(queue.Queue(maxsize=1))
