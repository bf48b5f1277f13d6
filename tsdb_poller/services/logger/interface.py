"""Logger contract shared by the poller's modules and services.

Every call takes a fixed message plus keyword context, e.g.
``log.debug("Processed metrics", processed=4, forwarded=2)``. Messages stay
constant so tests and log queries can match them; the varying values go in
the context.
"""

from abc import ABC, abstractmethod
from typing import Any


class LoggingInterface(ABC):
    @abstractmethod
    def info(self, msg: str, **ctx: Any) -> None:
        """Lifecycle events such as the start of polling."""

    @abstractmethod
    def warn(self, msg: str, **ctx: Any) -> None: ...

    @abstractmethod
    def error(self, msg: str, **ctx: Any) -> None:
        """Failed cycles, such as a query error; the poller keeps running."""

    @abstractmethod
    def debug(self, msg: str, **ctx: Any) -> None:
        """Per-cycle tracking diagnostics (expired, evicted, forwarded)."""
