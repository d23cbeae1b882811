from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable


@dataclass(frozen=True)
class FailureReport:
    source: str  # "write" | "poll" | "limits" | "detection"
    operation: str
    error: str
    t: float


class FailureChannel:
    """
    Bounded queue of failure reports for an observability consumer.

    Reporting never blocks: once the queue is full new reports are dropped and
    counted in ``dropped``; only the first drop is logged as a warning.
    """

    def __init__(self, maxsize: int = 64) -> None:
        self._queue: asyncio.Queue[FailureReport] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def report(self, source: str, operation: str, error: BaseException | str) -> None:
        rep = FailureReport(
            source=source, operation=operation, error=str(error), t=time.time()
        )
        try:
            self._queue.put_nowait(rep)
        except asyncio.QueueFull:
            self.dropped += 1
            if self.dropped == 1:
                logging.warning("Failure channel full, dropping reports (first: %s)", operation)
            else:
                logging.debug("Failure channel full, %d reports dropped", self.dropped)

    async def get(self) -> FailureReport:
        return await self._queue.get()

    def drain_nowait(self) -> list[FailureReport]:
        out: list[FailureReport] = []
        while True:
            try:
                out.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return out

    def qsize(self) -> int:
        return self._queue.qsize()


class Dispatcher:
    """
    Spawns fire-and-forget controller writes.

    The caller gets the task back but never has to await it; awaiting it never
    raises. On success ``on_success`` runs after the write completes, so the
    last write to *complete* is the one whose value ends up in the cache.
    """

    def __init__(self, failures: FailureChannel) -> None:
        self.failures = failures
        self._inflight: set[asyncio.Task] = set()
        self.sent = 0
        self.failed = 0

    def spawn(
        self,
        operation: str,
        write: Callable[[], Awaitable[object]],
        on_success: Callable[[], None] | None = None,
    ) -> asyncio.Task:
        task = asyncio.create_task(self._run(operation, write, on_success))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _run(
        self,
        operation: str,
        write: Callable[[], Awaitable[object]],
        on_success: Callable[[], None] | None,
    ) -> bool:
        try:
            await write()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failed += 1
            logging.error("%s failed: %s", operation, e)
            self.failures.report("write", operation, e)
            return False
        self.sent += 1
        if on_success is not None:
            on_success()
        logging.debug("%s sent", operation)
        return True

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def drain(self) -> None:
        """Wait for every write dispatched so far (including ones spawned meanwhile)."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
