import os
import sys
from datetime import datetime, timezone
from typing import Any

from tsdb_poller.services.logger.interface import LoggingInterface

# level -> (rank, ANSI color)
_LEVELS: dict[str, tuple[int, str]] = {
    "DEBUG": (10, "\033[36m"),
    "INFO": (20, "\033[32m"),
    "WARN": (30, "\033[33m"),
    "ERROR": (40, "\033[31m"),
}
_ALIASES = {"WARNING": "WARN"}
_RESET = "\033[0m"


def _rank(name: str) -> int:
    level = _ALIASES.get(name.upper(), name.upper())
    return _LEVELS.get(level, _LEVELS["INFO"])[0]


class PrettyLogger(LoggingInterface):
    """Colorized ``HH:MM:SS [LEVEL] message key=value`` lines on stderr.

    Stdout stays reserved for line protocol. The threshold comes from
    *level* or ``LOG_LEVEL`` and defaults to INFO.
    """

    def __init__(self, level: str | None = None) -> None:
        self._threshold = _rank(level or os.environ.get("LOG_LEVEL", "INFO"))

    def debug(self, msg: str, **ctx: Any) -> None:
        self._emit("DEBUG", msg, ctx)

    def info(self, msg: str, **ctx: Any) -> None:
        self._emit("INFO", msg, ctx)

    def warn(self, msg: str, **ctx: Any) -> None:
        self._emit("WARN", msg, ctx)

    def error(self, msg: str, **ctx: Any) -> None:
        self._emit("ERROR", msg, ctx)

    def _emit(self, level: str, msg: str, ctx: dict[str, Any]) -> None:
        rank, color = _LEVELS[level]
        if rank < self._threshold:
            return
        stamp = datetime.now(timezone.utc).strftime("%H:%M:%S")
        pairs = "".join(f" {k}={v}" for k, v in ctx.items())
        sys.stderr.write(f"{color}{stamp} [{level}]{_RESET} {msg}{pairs}\n")
