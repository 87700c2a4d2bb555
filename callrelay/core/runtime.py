from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from callrelay.infra.logging_config import get_logger
from callrelay.schemas.call import CallEvent, CallOutcome

logger = get_logger("runtime")

CallHandler = Callable[[CallEvent], Awaitable[CallOutcome]]
ReconcileHandler = Callable[[], None]


@dataclass
class Runtime:
    """
    Single consumer of the call-event queue plus the periodic reconcile loop.

    Events are processed one at a time in arrival order; reconcile runs in a
    worker thread on its own task and never blocks event handling.
    """

    call_handler: CallHandler
    reconcile_handler: Optional[ReconcileHandler] = None
    reconcile_interval: float = 300.0
    outcomes: List[CallOutcome] = field(default_factory=list)
    max_outcomes: int = 100

    def __post_init__(self) -> None:
        self._queue: Optional[asyncio.Queue[CallEvent]] = None
        self._consumer: Optional[asyncio.Task[None]] = None
        self._reconciler: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    async def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume())
        if self.reconcile_handler is not None:
            self._reconciler = asyncio.create_task(self._reconcile_loop())
        logger.info("Call runtime started")

    async def stop(self) -> None:
        for task in (self._consumer, self._reconciler):
            if task is None:
                continue
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._consumer = None
        self._reconciler = None
        logger.info("Call runtime stopped")

    async def submit(self, event: CallEvent) -> None:
        if self._queue is None:
            raise RuntimeError("Runtime is not started")
        await self._queue.put(event)

    async def join(self) -> None:
        """Wait until every submitted event has been handled."""
        if self._queue is not None:
            await self._queue.join()

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            event = await self._queue.get()
            try:
                outcome = await self.call_handler(event)
                self._remember(outcome)
                logger.info("Call %s -> %s", outcome.call_id, outcome.status)
            except Exception:
                logger.exception("Call handler crashed for %s", event.call_id)
            finally:
                self._queue.task_done()

    async def _reconcile_loop(self) -> None:
        assert self.reconcile_handler is not None
        while True:
            try:
                await asyncio.to_thread(self.reconcile_handler)
            except Exception:
                logger.exception("Config reconcile failed")
            await asyncio.sleep(self.reconcile_interval)

    def _remember(self, outcome: CallOutcome) -> None:
        self.outcomes.append(outcome)
        if len(self.outcomes) > self.max_outcomes:
            del self.outcomes[: len(self.outcomes) - self.max_outcomes]
