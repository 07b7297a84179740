"""Writable storage root used for frame directories and finished videos.

All paths handed to :class:`SaveDirectory` are relative to its root, the same
way a game engine's save directory is addressed.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


def unique_path(base: str, extension: Optional[str] = None, exists: Callable[[str], bool] = os.path.exists) -> str:
    """Return ``base[.extension]``, or the first ``baseN[.extension]`` that is free.

    Args:
        base: Desired path without extension
        extension: Optional extension, without the leading dot
        exists: Existence predicate, ``os.path.exists`` unless a caller
            addresses paths relative to some other root

    Returns:
        A path for which ``exists`` returned False
    """
    suffix = f".{extension}" if extension else ""
    candidate = base + suffix
    n = 0
    while exists(candidate):
        n += 1
        candidate = f"{base}{n}{suffix}"
    return candidate


class SaveDirectory:
    """Filesystem access confined to one writable root directory."""

    def __init__(self, root: str):
        self.root = os.path.abspath(str(root))

    def full_path(self, rel: str) -> str:
        return os.path.join(self.root, str(rel))

    def exists(self, rel: str) -> bool:
        return os.path.exists(self.full_path(rel))

    def make_dir(self, rel: str) -> str:
        path = self.full_path(rel)
        os.makedirs(path, exist_ok=True)
        return path

    def list_dir(self, rel: str) -> List[str]:
        path = self.full_path(rel)
        if not os.path.isdir(path):
            return []
        return sorted(os.listdir(path))

    def remove(self, rel: str) -> bool:
        """Remove a file or an empty directory.

        Returns False instead of raising when the target is missing or the
        directory still has entries.
        """
        path = self.full_path(rel)
        try:
            if os.path.isdir(path):
                os.rmdir(path)
            else:
                os.remove(path)
            return True
        except OSError as e:
            logger.debug("[storage] remove failed (path=%s): %s", path, e)
            return False

    def unique_path(self, base: str, extension: Optional[str] = None) -> str:
        """Relative counterpart of :func:`unique_path`, checked against this root."""
        return unique_path(base, extension, exists=self.exists)
