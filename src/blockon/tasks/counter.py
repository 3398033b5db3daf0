"""
Counter future

Counts up by one per poll and reschedules itself by waking its own waker
before returning pending. Not cancellable: it always counts to the end.
"""

import logging
import threading

from ..core.errors import ConstructionError, FutureCompletedError
from ..core.future import UncancellableFuture
from ..core.poll import Context, Poll

logger = logging.getLogger(__name__)


class SharedCounter:
    """Integer counter shared between threads"""

    def __init__(self, value: int = 0):
        self._lock = threading.Lock()
        self._value = value

    def increment(self) -> int:
        """Add one and return the new value"""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class CounterFuture(UncancellableFuture[int]):
    """Completes with ``max`` after ``max`` polls"""

    def __init__(self, max: int):
        if max < 0:
            raise ConstructionError(
                f"Counter ceiling must not be negative: {max}", {"max": max}
            )
        self.counter = SharedCounter()
        self.max = max
        self._done = False

    @property
    def polls(self) -> int:
        return self.counter.value

    def poll(self, ctx: Context) -> Poll[int]:
        if self._done:
            raise FutureCompletedError("Counter polled after completion")

        value = self.counter.increment()
        logger.debug(f"Polled with current value: {value}")

        if value >= self.max:
            self._done = True
            return Poll.ready(value)

        ctx.waker.wake()
        return Poll.pending()

    def __repr__(self) -> str:
        return f"CounterFuture(max={self.max})"


def count(max: int) -> CounterFuture:
    """Future counting from 0 up to ``max``, one step per poll"""
    logger.info(f"Counting to {max}")
    return CounterFuture(max)
