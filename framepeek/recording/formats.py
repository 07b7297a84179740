"""
Container formats accepted for the finished video.

Each format carries the extension of the output file and any extra ffmpeg
arguments it needs.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ContainerFormat:
    """
    Output container configuration.

    Attributes:
        name: Format name as given in the recording options
        extension: Output file extension, without the dot
        extra_args: Additional ffmpeg arguments placed before the output path
        description: Human-readable description
    """
    name: str
    extension: str
    extra_args: List[str] = field(default_factory=list)
    description: str = ""


FORMAT_MP4 = ContainerFormat(
    name="mp4",
    extension="mp4",
    # yuv420p keeps the file playable in browsers and stock players;
    # faststart moves the index to the front for progressive playback.
    extra_args=["-filter:v", "format=yuv420p", "-movflags", "+faststart"],
    description="H.264 in MP4. Widest player support.",
)

FORMAT_MKV = ContainerFormat(
    name="mkv",
    extension="mkv",
    description="Matroska with ffmpeg's default codec choice.",
)

FORMAT_WEBM = ContainerFormat(
    name="webm",
    extension="webm",
    description="VP9 in WebM.",
)

# Insertion order matters: the first entry is the default format.
FORMATS: Dict[str, ContainerFormat] = {
    "mp4": FORMAT_MP4,
    "mkv": FORMAT_MKV,
    "webm": FORMAT_WEBM,
}

SUPPORTED_FORMATS = tuple(FORMATS.keys())


def get_format(name: str) -> Optional[ContainerFormat]:
    """
    Get a container format by name.

    Args:
        name: Format name (mp4, mkv, webm)

    Returns:
        ContainerFormat object or None if not supported
    """
    return FORMATS.get(str(name).lower())


def list_formats() -> List[str]:
    """List all supported format names, default first."""
    return list(FORMATS.keys())
