"""
Captured frames and the PNG encoding each worker performs.

A frame is whatever the host's screenshot primitive produced: raw pixel
bytes or an (H, W, C) numpy array.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Union

import numpy as np
from PIL import Image

FRAME_PATTERN = "%04d.png"

Pixels = Union[bytes, bytearray, memoryview, np.ndarray]


def frame_filename(sequence: int) -> str:
    return FRAME_PATTERN % int(sequence)


@dataclass(frozen=True)
class FrameJob:
    """One frame to encode: its sequence number and destination directory."""

    sequence: int
    out_dir: str

    @property
    def path(self) -> str:
        return os.path.join(self.out_dir, frame_filename(self.sequence))


@dataclass
class CapturedFrame:
    """
    Raw pixels of one rendered frame.

    Attributes:
        width: Frame width in pixels
        height: Frame height in pixels
        pixels: Raw bytes (row-major, top row first) or an (H, W, C) array
        mode: Pillow mode of the pixel data ("RGB" or "RGBA")
    """

    width: int
    height: int
    pixels: Pixels
    mode: str = "RGB"

    @classmethod
    def from_array(cls, frame: np.ndarray) -> "CapturedFrame":
        if frame.ndim != 3 or frame.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (H, W, 3|4) array, got shape {frame.shape}")
        h, w, c = frame.shape
        return cls(width=int(w), height=int(h), pixels=frame, mode="RGB" if c == 3 else "RGBA")

    def to_image(self) -> Image.Image:
        """
        Convert to a Pillow image.

        Raises:
            ValueError: If a byte buffer does not match width*height*channels
        """
        if isinstance(self.pixels, np.ndarray):
            frame = self.pixels
            if frame.dtype != np.uint8:
                frame = (np.clip(frame, 0.0, 1.0) * 255).astype(np.uint8)
            return Image.fromarray(frame)

        expected = int(self.width) * int(self.height) * len(self.mode)
        data = bytes(self.pixels)
        if len(data) != expected:
            raise ValueError(f"Invalid frame buffer size: got {len(data)}, expected {expected}")
        return Image.frombytes(self.mode, (int(self.width), int(self.height)), data)


def encode_png(frame: CapturedFrame, path: str) -> None:
    """Write ``frame`` to ``path`` as PNG."""
    frame.to_image().save(path, "PNG")
