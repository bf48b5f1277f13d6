from __future__ import annotations

from tsdb_poller.services.logger.interface import LoggingInterface
from tsdb_poller.services.logger.memory_logger import MemoryLogger
from tsdb_poller.services.logger.pretty_logger import PrettyLogger

_IMPLEMENTATIONS: dict[str, type[LoggingInterface]] = {
    "pretty": PrettyLogger,
    "memory": MemoryLogger,
}


def _lookup(name: str) -> type[LoggingInterface]:
    try:
        return _IMPLEMENTATIONS[name]
    except KeyError:
        available = ", ".join(_IMPLEMENTATIONS)
        raise ValueError(
            f"Unknown logger implementation: '{name}' (available: {available})"
        ) from None


class LoggerFactory:
    """Hands out one shared logger per implementation name.

    Modules receive the factory through the container and call ``create()``
    in ``initialize``; the ``--log`` flag decides the default.
    """

    def __init__(self, default_impl: str = "pretty") -> None:
        _lookup(default_impl)
        self._default_impl = default_impl
        self._loggers: dict[str, LoggingInterface] = {}

    def create(self, impl_name: str | None = None) -> LoggingInterface:
        name = impl_name or self._default_impl
        logger = self._loggers.get(name)
        if logger is None:
            logger = self._loggers[name] = _lookup(name)()
        return logger
