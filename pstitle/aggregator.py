from abc import ABC, abstractmethod
from collections.abc import Callable
import asyncio
import logging
import queue
from typing import assert_never

from pstitle.faults import EventDeliveryError
from pstitle.interrupts import InterruptSource
from pstitle.progress import ProgressTracker
from pstitle.report import Report
from pstitle.schemas import (
    Interrupt,
    Outcome,
    PartialSuccess,
    Progress,
    ProgressEvent,
    RecordError,
    Success,
)


logger = logging.getLogger(__name__)


class EventMerge(ABC):
    def __init__(self, interrupt: InterruptSource, *, timeout_seconds: float = 30.0) -> None:
        self._interrupt = interrupt
        self._timeout = timeout_seconds
        self._closed = False
        self._subscription: Callable[[], None] | None = None

    def _subscribe(self, callback: Callable[[], None]) -> None:
        self._subscription = callback
        self._interrupt.subscribe(callback)

    def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            self._interrupt.unsubscribe(self._subscription)
            self._subscription = None

    def send(self, outcome: Outcome) -> None:
        if self._closed:
            raise EventDeliveryError("progress channel is closed")
        self._put(Progress(outcome))

    @abstractmethod
    def _put(self, event: Progress) -> None: ...


class ThreadedEventMerge(EventMerge):
    def __init__(self, interrupt: InterruptSource, *, timeout_seconds: float = 30.0) -> None:
        super().__init__(interrupt, timeout_seconds=timeout_seconds)
        # SimpleQueue.put is reentrant, so the interrupt can be forwarded
        # straight from a signal handler.
        self._queue: queue.SimpleQueue[ProgressEvent] = queue.SimpleQueue()
        self._subscribe(lambda: self._queue.put(Interrupt()))

    def _put(self, event: Progress) -> None:
        self._queue.put(event)

    def receive(self) -> list[ProgressEvent]:
        if self._closed and self._queue.empty():
            return []
        try:
            first = self._queue.get(timeout=self._timeout)
        except queue.Empty as exc:
            raise EventDeliveryError(f"no progress event received within {self._timeout}s") from exc
        return [first, *self._drain()]

    def _drain(self) -> list[ProgressEvent]:
        events: list[ProgressEvent] = []
        for _ in range(self._queue.qsize()):
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return events


class AsyncEventMerge(EventMerge):
    def __init__(self, interrupt: InterruptSource, *, timeout_seconds: float = 30.0) -> None:
        super().__init__(interrupt, timeout_seconds=timeout_seconds)
        self._queue: asyncio.Queue[Progress] = asyncio.Queue()
        self._interrupt_seen = asyncio.Event()
        self._interrupt_delivered = False
        self._bound = False

    def _bind(self) -> None:
        if self._bound or self._closed:
            return
        self._bound = True
        loop = asyncio.get_running_loop()

        def _forward() -> None:
            # asyncio.run closes the loop before the run's signal handlers are restored.
            if not loop.is_closed():
                loop.call_soon_threadsafe(self._interrupt_seen.set)

        self._subscribe(_forward)

    def _put(self, event: Progress) -> None:
        self._queue.put_nowait(event)

    async def receive(self) -> list[ProgressEvent]:
        self._bind()
        if self._closed and self._queue.empty():
            return []

        next_progress = asyncio.ensure_future(self._queue.get())
        waiters: set[asyncio.Future] = {next_progress}
        if not self._interrupt_delivered:
            waiters.add(asyncio.ensure_future(self._interrupt_seen.wait()))

        done, pending = await asyncio.wait(waiters, timeout=self._timeout, return_when=asyncio.FIRST_COMPLETED)
        for waiter in pending:
            # A cancelled Queue.get never consumes an item.
            waiter.cancel()
        if not done:
            raise EventDeliveryError(f"no progress event received within {self._timeout}s")

        events: list[ProgressEvent] = []
        if next_progress in done:
            events.append(next_progress.result())
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        if not self._interrupt_delivered and self._interrupt_seen.is_set():
            self._interrupt_delivered = True
            events.append(Interrupt())
        return events


class ProgressAggregator:
    def __init__(self, events: EventMerge, report: Report, tracker: ProgressTracker) -> None:
        self._events = events
        self._report = report
        self._tracker = tracker
        self._interrupted = False

    @property
    def report(self) -> Report:
        return self._report

    @property
    def interrupted(self) -> bool:
        return self._interrupted

    def apply(self, event: ProgressEvent) -> None:
        match event:
            case Progress(outcome=outcome):
                self._record(outcome)
            case Interrupt():
                self._mark_interrupted()
            case _:
                assert_never(event)

    def _record(self, outcome: Outcome) -> None:
        match outcome:
            case Success():
                self._report.successful += 1
            case PartialSuccess():
                self._report.info_missing += 1
            case RecordError(record=record, message=message):
                self._report.failed.append((record, message))
            case _:
                assert_never(outcome)
        self._tracker.advance()

    def _mark_interrupted(self) -> None:
        if self._interrupted:
            return
        self._interrupted = True
        self._tracker.finish()
        logger.warning("interrupt received, finishing current record", extra={"observed": self._report.observed})

    def sync(self) -> None:
        # Interruption is final: nothing is applied once it has been handled.
        if self._interrupted:
            return
        for event in self._events.receive():
            self.apply(event)

    async def sync_async(self) -> None:
        if self._interrupted:
            return
        for event in await self._events.receive():
            self.apply(event)

    def close(self) -> None:
        self._events.close()
