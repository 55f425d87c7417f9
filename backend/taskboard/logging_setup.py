"""Root logger configuration, applied once at startup."""

from __future__ import annotations

import logging

_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=_FORMAT)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(resolved, logging.WARNING))
