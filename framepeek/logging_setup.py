from __future__ import annotations

import logging
import os
from typing import Any, List

LOG_LEVEL_ENV = "FRAMEPEEK_LOG_LEVEL"


def setup_logging(args: Any) -> None:
    """Configure python logging once for the record CLI.

    Priority (highest first):
    - env FRAMEPEEK_LOG_LEVEL
    - --quiet / --basic_debug
    - default: INFO

    ``--log_file`` appends records to that file as well.
    """

    root = logging.getLogger()
    if root.handlers:
        return

    level = logging.INFO
    if args.quiet:
        level = logging.WARNING
    if args.basic_debug:
        level = logging.DEBUG
    env_level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "").strip().upper())
    if isinstance(env_level, int):
        level = env_level

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if args.log_file:
        handlers.append(logging.FileHandler(str(args.log_file), encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
    )
