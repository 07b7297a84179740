"""
Recording pipeline: capture, parallel PNG encode, and ffmpeg finalize.

- Worker / WorkerPool encode captured frames in parallel
- FrameScheduler dispatches one frame per host tick
- Finalizer assembles the PNG sequence into a video
"""

from .base import CaptureSource
from .formats import SUPPORTED_FORMATS, ContainerFormat, get_format
from .frame import CapturedFrame, FrameJob, encode_png
from .scheduler import FrameScheduler
from .worker import Worker, WorkerError, WorkerPool

__all__ = [
    'CaptureSource',
    'CapturedFrame',
    'ContainerFormat',
    'FrameJob',
    'FrameScheduler',
    'SUPPORTED_FORMATS',
    'Worker',
    'WorkerError',
    'WorkerPool',
    'encode_png',
    'get_format',
]
