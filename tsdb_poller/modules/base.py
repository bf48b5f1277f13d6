from abc import ABC, abstractmethod


class AsyncModule(ABC):
    """A runnable unit of the poller, built by the container from type hints.

    ``run()`` calls initialize, validate and execute in turn; teardown runs
    afterwards no matter which step failed.
    """

    async def initialize(self) -> None:
        """Read configuration and create clients."""

    async def validate(self) -> None:
        """Reject unusable configuration by raising ValueError."""

    @abstractmethod
    async def execute(self) -> int:
        """Do the work; the return value becomes the process exit code."""

    async def teardown(self) -> None:
        """Release what initialize created."""

    async def run(self) -> int:
        try:
            await self.initialize()
            await self.validate()
            return await self.execute()
        finally:
            await self.teardown()
