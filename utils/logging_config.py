from __future__ import annotations

import logging
import os


DEFAULT_LOG_LEVEL = "WARNING"


def log_level_from_env() -> int:
    """Resolve the log level from `TIMETABLER_LOG_LEVEL` (name or number)."""

    raw = (os.getenv("TIMETABLER_LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(level: int | None = None) -> None:
    """Configure console logging once.

    Safe to call multiple times (won't double-add handlers).
    """

    root = logging.getLogger()
    if root.handlers:
        return

    lvl = log_level_from_env() if level is None else int(level)

    console = logging.StreamHandler()
    console.setLevel(lvl)
    console.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )

    logging.basicConfig(level=lvl, handlers=[console])
