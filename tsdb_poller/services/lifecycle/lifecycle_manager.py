"""Shutdown orchestration for long-running poller modules.

SIGTERM/SIGINT mark the manager as stopping, which ends the polling loop
after the current cycle and wakes any ``wait()``. ``shutdown()`` then fails
readiness, runs the registered hooks newest-first and stops the health
server.
"""

from __future__ import annotations

import asyncio
import inspect
import signal
from typing import Any, Awaitable, Callable, Union

from tsdb_poller.services.health.health_server import HealthCheckServer

ShutdownHook = Union[Callable[[], None], Callable[[], Awaitable[None]]]

_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class LifecycleManager:
    def __init__(self) -> None:
        self._hooks: list[ShutdownHook] = []
        self._stopping = False
        self._shutdown_task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None
        self._health_server: HealthCheckServer | None = None
        self.hook_errors: list[Exception] = []

    @property
    def is_shutting_down(self) -> bool:
        return self._stopping

    @property
    def health_server(self) -> HealthCheckServer | None:
        return self._health_server

    def set_health_server(self, server: HealthCheckServer) -> None:
        self._health_server = server

    def on_shutdown(self, hook: ShutdownHook) -> None:
        """Register *hook*; hooks run in reverse registration order."""
        self._hooks.append(hook)

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Route SIGTERM/SIGINT to shutdown.

        With a running *loop* the full shutdown is scheduled on it; without
        one the signal only flips ``is_shutting_down``.
        """
        for sig in _SIGNALS:
            if loop is not None:
                loop.add_signal_handler(sig, self._on_loop_signal)
            else:
                signal.signal(sig, self._on_sync_signal)

    async def wait(self, seconds: float) -> None:
        """Sleep for *seconds* or until shutdown starts, whichever is first."""
        if self._stopping:
            return
        if self._stop_event is None:
            self._stop_event = asyncio.Event()
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return

    async def shutdown(self) -> None:
        """Run the shutdown sequence once; concurrent callers wait for it."""
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self._shut_down())
        await self._shutdown_task

    async def _shut_down(self) -> None:
        self._begin_stopping()

        if self._health_server is not None:
            self._health_server.mark_not_ready()

        while self._hooks:
            hook = self._hooks.pop()
            try:
                outcome = hook()
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                self.hook_errors.append(exc)

        if self._health_server is not None:
            await self._health_server.stop()

    def _begin_stopping(self) -> None:
        self._stopping = True
        if self._stop_event is not None:
            self._stop_event.set()

    def _on_sync_signal(self, signum: int, frame: Any) -> None:
        self._stopping = True

    def _on_loop_signal(self) -> None:
        if self._stopping:
            return
        self._begin_stopping()
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.get_running_loop().create_task(self._shut_down())
