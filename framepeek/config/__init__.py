from __future__ import annotations

from .schema import RecordOptions, max_threads, resolve_options
from .jsonc import load_options_file

__all__ = ["RecordOptions", "max_threads", "resolve_options", "load_options_file"]
