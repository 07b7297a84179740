"""
Capture interface between the host renderer and the recording workers.

Defines the CaptureSource protocol every screenshot primitive must follow.
"""

import queue
from typing import Protocol


class CaptureSource(Protocol):
    """
    Protocol for screenshot primitives.

    Implementations grab the most recently rendered frame and hand it to a
    worker through that worker's single-slot channel.
    """

    def capture(self, channel: "queue.Queue") -> None:
        """
        Put one CapturedFrame into ``channel``.

        Args:
            channel: The worker's single-slot channel (maxsize=1)

        Note:
            The frame may be delivered after this call returns; the worker
            blocks on the channel until it arrives.
        """
        ...
