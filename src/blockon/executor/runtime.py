"""
Blocking runtime

Drives one future to completion on the calling thread: poll, and park between
polls until the future's waker fires. The shared abort flag is checked before
every poll and forwarded to the future.
"""

import logging
import threading
from typing import Optional, TypeVar

from ..core.abort import AbortFlag
from ..core.errors import RuntimeUsageError
from ..core.future import ExtFuture
from ..core.poll import Context
from ..core.waker import Waker, current, park
from .tracing import PollTracer, TracingMixin

logger = logging.getLogger(__name__)

T = TypeVar("T")

_thread_state = threading.local()


class SimpleRuntime(TracingMixin):
    """
    Single-future blocking runtime

    One future in flight per ``block_on`` call. The runtime can be reused
    for any number of sequential calls; each call is independent.
    """

    def __init__(self, abort: AbortFlag, tracer: Optional[PollTracer] = None):
        """
        Args:
            abort: Shared abort flag; the runtime only reads it
            tracer: Optional poll tracer
        """
        TracingMixin.__init__(self)
        self.abort = abort
        if tracer is not None:
            self.set_tracer(tracer)

    def block_on(self, future: ExtFuture[T]) -> T:
        """
        Poll ``future`` until it is ready and return its value

        Blocks forever if the future stays pending and never wakes the
        runtime. Exceptions raised by ``poll`` propagate unchanged.

        Args:
            future: A cancellable-contract future; wrap plain futures and
                coroutines with ``adapt`` first

        Returns:
            The future's output

        Raises:
            TypeError: ``future`` does not implement ``ExtFuture``
            RuntimeUsageError: called from inside a poll on the same thread
        """
        if not isinstance(future, ExtFuture):
            raise TypeError(
                f"{type(future).__name__} is not an ExtFuture; wrap it with adapt()"
            )
        if getattr(_thread_state, "running", False):
            raise RuntimeUsageError(
                "block_on called while this thread is already running a future",
                {"thread": threading.current_thread().name},
            )

        _thread_state.running = True
        try:
            return self._run(future)
        finally:
            _thread_state.running = False

    run_to_completion = block_on

    def _run(self, future: ExtFuture[T]) -> T:
        name = repr(future)
        thread = current()
        abort_forwarded = False

        logger.info(f"Running future {name}")
        self.trace_run_start(name)

        while True:
            abort_requested = self.abort.is_set()
            if abort_requested:
                if not abort_forwarded:
                    logger.info(f"Aborting future {name}")
                    abort_forwarded = True
                future.abort()

            # one waker per attempt, always addressing the calling thread
            ctx = Context(Waker(thread))

            logger.debug("Polling future")
            trace = self.trace_poll_start(name, abort_requested)
            try:
                result = future.poll(ctx)
            except Exception as e:
                self.trace_poll_complete(trace, "error", error=e)
                logger.error(f"Future {name} raised during poll: {e}")
                raise

            if result.is_ready():
                self.trace_poll_complete(trace, "ready")
                logger.info(f"Future {name} is ready")
                return result.value

            self.trace_poll_complete(trace, "pending")
            park()
            self.trace_park()
            logger.debug("Parked")
