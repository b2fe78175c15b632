import logging
import os
import sys
from typing import IO, Optional

ENV_LOG_LEVEL = "MEMORY_MATCH_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def configure_logging(level: int = logging.INFO, stream: Optional[IO[str]] = None) -> logging.Handler:
    """Route memory_match logs to a single stream handler on the root logger.

    Logs go to stderr by default so CLI output on stdout stays valid JSON.
    MEMORY_MATCH_LOG_LEVEL (e.g. ``debug``) overrides ``level``.
    """
    level_name = os.getenv(ENV_LOG_LEVEL)
    if level_name:
        level = getattr(logging, level_name.upper(), level)

    handler = logging.StreamHandler(stream=stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.setLevel(level)
    # Repeated calls (one per CLI invocation in tests) must not stack handlers
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    return handler
