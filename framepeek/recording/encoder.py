"""
ffmpeg invocation for turning a frame directory into a video.

The command is built as an argv list by a per-platform EncodeCommand and run
with the frame directory as working directory, so the ``%04d.png`` input
pattern resolves without any path quoting.
"""

from __future__ import annotations

import platform
import shutil
import subprocess
from typing import Any, Dict, List, Optional

from .formats import ContainerFormat
from .frame import FRAME_PATTERN

POSIX_SYSTEMS = ("Linux", "Darwin", "FreeBSD", "OpenBSD", "NetBSD")
WINDOWS_SYSTEMS = ("Windows",)


class UnsupportedPlatformError(RuntimeError):
    """No encode command shape is known for this operating system."""


def check_ffmpeg(binary: str = "ffmpeg") -> bool:
    """
    Check if ffmpeg is available in the system.

    Returns:
        True if ffmpeg is found, False otherwise
    """
    return shutil.which(binary) is not None


def format_fps(fps: float) -> str:
    f = float(fps)
    return str(int(f)) if f.is_integer() else repr(f)


class EncodeCommand:
    """
    Builds the ffmpeg argv for one platform.

    Subclasses differ in how the executable is named and how the child
    process is spawned.
    """

    system = ""

    def __init__(self, binary: str = "ffmpeg"):
        self.binary = binary

    def executable(self) -> str:
        return self.binary

    def build(self, fps: float, fmt: ContainerFormat, output: str) -> List[str]:
        """
        Build ffmpeg command line arguments.

        Args:
            fps: Input framerate of the image sequence
            fmt: Output container format
            output: Output video path, relative to the frame directory

        Returns:
            List of command arguments
        """
        cmd = [
            self.executable(),
            '-hide_banner',
            '-loglevel', 'error',
            '-nostdin',
            '-framerate', format_fps(fps),
            '-i', FRAME_PATTERN,
        ]
        cmd.extend(fmt.extra_args)
        cmd.append(output)
        return cmd

    def popen_kwargs(self) -> Dict[str, Any]:
        return {}


class PosixEncodeCommand(EncodeCommand):
    system = "posix"


class WindowsEncodeCommand(EncodeCommand):
    system = "windows"

    def executable(self) -> str:
        if self.binary.lower().endswith(".exe") or "/" in self.binary or "\\" in self.binary:
            return self.binary
        return self.binary + ".exe"

    def popen_kwargs(self) -> Dict[str, Any]:
        # Keeps a console window from flashing up over the host's window.
        return {"creationflags": getattr(subprocess, "CREATE_NO_WINDOW", 0)}


def encoder_for_platform(system: Optional[str] = None, binary: str = "ffmpeg") -> EncodeCommand:
    """
    Pick the EncodeCommand for an operating system.

    Args:
        system: ``platform.system()`` style name; the running OS when None
        binary: ffmpeg executable name or path

    Raises:
        UnsupportedPlatformError: For any other operating system
    """
    name = platform.system() if system is None else str(system)
    if name in POSIX_SYSTEMS:
        return PosixEncodeCommand(binary)
    if name in WINDOWS_SYSTEMS:
        return WindowsEncodeCommand(binary)
    raise UnsupportedPlatformError(f"no ffmpeg command shape for platform {name!r}")
