from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
import signal
import threading
import time
from typing import Any

from pstitle.faults import InterruptInstallError


class InterruptSource:
    def __init__(self, capacity: int = 2) -> None:
        if capacity < 1:
            raise ValueError("interrupt buffer capacity must be at least 1")
        # Signals past capacity are dropped so the signal handler never blocks.
        self._received: deque[float] = deque(maxlen=capacity)
        self._subscribers: list[Callable[[], None]] = []

    @property
    def raised(self) -> bool:
        return bool(self._received)

    @property
    def received_count(self) -> int:
        return len(self._received)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Callable[[], None]) -> None:
        self._subscribers.append(callback)
        if self.raised:
            callback()

    def unsubscribe(self, callback: Callable[[], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def trigger(self) -> None:
        # Must stay safe to call from a signal handler: no locks, no logging.
        if len(self._received) == self._received.maxlen:
            return
        first = not self._received
        self._received.append(time.monotonic())
        if first:
            for callback in list(self._subscribers):
                callback()


@contextmanager
def interrupt_handler(source: InterruptSource) -> Iterator[InterruptSource]:
    # signal.signal() only works on the main thread; elsewhere the source can
    # still be triggered programmatically.
    if threading.current_thread() is not threading.main_thread():
        yield source
        return

    def _handler(signum: int, frame: Any) -> None:
        source.trigger()

    try:
        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except (OSError, ValueError) as exc:
        raise InterruptInstallError(f"failed to install interrupt handler: {exc}") from exc

    try:
        yield source
    finally:
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)
