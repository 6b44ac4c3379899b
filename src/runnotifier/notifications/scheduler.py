"""
DeliveryScheduler - delayed, fire-and-forget execution of delivery jobs.

Runs an asyncio event loop on one background thread so that host threads
can hand off work without ever waiting on the network. Each submission
carries its due time (enqueue time + delay); the number of accepted but
unfinished submissions is bounded, and overflow drops the newest one.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DeliveryJob = Callable[[], Awaitable[None]]


class DeliveryScheduler:
    """Bounded delayed-task executor backed by a background event loop."""

    def __init__(self, max_pending: int = 100, workers: int = 4) -> None:
        self.max_pending = max_pending
        self.workers = workers
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending = 0
        self._dropped = 0
        self._closed = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._slots: asyncio.Semaphore | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def dropped(self) -> int:
        return self._dropped

    def start(self) -> None:
        """Start the background loop. Safe to call repeatedly."""
        with self._lock:
            if self._closed:
                return
            if self._thread is not None and self._thread.is_alive():
                return
            ready = threading.Event()
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(self._loop, ready),
                name="runnotifier-delivery",
                daemon=True,
            )
            self._thread.start()
        ready.wait()

    def submit(self, delay: float, job: DeliveryJob, label: str = "") -> bool:
        """
        Schedule ``job`` to run ``delay`` seconds from now.

        Never blocks on the job itself. Returns False if the submission
        was dropped because the scheduler is full or shut down.
        """
        due = time.monotonic() + max(delay, 0.0)
        with self._lock:
            if self._closed:
                logger.warning("Scheduler is shut down, dropping %s", label or "delivery")
                return False
            if self._pending >= self.max_pending:
                self._dropped += 1
                logger.warning(
                    "Delivery backlog full (%d pending), dropping %s",
                    self._pending,
                    label or "delivery",
                )
                return False
            self._pending += 1

        self.start()
        try:
            self._loop.call_soon_threadsafe(self._spawn, due, job, label)
        except (AttributeError, RuntimeError):
            # Lost a race with shutdown(); the loop is gone or closed.
            with self._idle:
                self._pending -= 1
                self._idle.notify_all()
            logger.warning("Scheduler stopped, dropping %s", label or "delivery")
            return False
        return True

    def drain(self, timeout: float | None = None) -> bool:
        """Block until every accepted job has finished. False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def shutdown(self, wait: bool = True, timeout: float | None = None) -> None:
        """Stop accepting work, optionally drain, then stop the loop."""
        with self._lock:
            self._closed = True
        if wait:
            self.drain(timeout)

        loop, thread = self._loop, self._thread
        if loop is None or thread is None:
            return
        if thread.is_alive():
            loop.call_soon_threadsafe(loop.stop)
            thread.join(timeout)
        self._loop = None
        self._thread = None

    # -- loop thread ---------------------------------------------------------

    def _run_loop(self, loop: asyncio.AbstractEventLoop, ready: threading.Event) -> None:
        asyncio.set_event_loop(loop)
        self._slots = asyncio.Semaphore(self.workers)
        ready.set()
        try:
            loop.run_forever()
        finally:
            leftover = [t for t in asyncio.all_tasks(loop) if not t.done()]
            for task in leftover:
                task.cancel()
            if leftover:
                loop.run_until_complete(
                    asyncio.gather(*leftover, return_exceptions=True)
                )
            loop.close()

    def _spawn(self, due: float, job: DeliveryJob, label: str) -> None:
        task = asyncio.get_running_loop().create_task(self._run(due, job, label))
        self._tasks.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        with self._idle:
            self._pending -= 1
            if self._pending == 0:
                self._idle.notify_all()

    async def _run(self, due: float, job: DeliveryJob, label: str) -> None:
        try:
            remaining = due - time.monotonic()
            if remaining > 0:
                await asyncio.sleep(remaining)
            async with self._slots:
                await job()
        except asyncio.CancelledError:
            logger.debug("Cancelled pending %s", label or "delivery")
            raise
        except Exception:
            logger.exception("Scheduled %s failed", label or "delivery")
