"""
Future contracts and the adapter

A future is anything with ``poll(ctx) -> Poll``. The runtime drives
``ExtFuture`` objects, which add ``abort()``. There are two kinds:

- ``CancellableFuture``: overrides ``abort`` and honours it on the next poll
- ``UncancellableFuture``: keeps the no-op ``abort``

``adapt`` turns a plain future (or a coroutine) into an uncancellable one so
the runtime always receives the same interface.
"""

import inspect
from abc import ABC, abstractmethod
from contextvars import ContextVar
from typing import (
    Any,
    ClassVar,
    Coroutine,
    Generator,
    Generic,
    Optional,
    Protocol,
    TypeVar,
    Union,
    runtime_checkable,
)

from .errors import FutureCompletedError, RuntimeUsageError
from .poll import Context, Poll

T = TypeVar("T")

# Context of the poll currently running on this thread, used by ``await``
_current_context: ContextVar[Optional[Context]] = ContextVar(
    "blockon_current_context", default=None
)

# Yielded by ``ExtFuture.__await__`` to suspend the enclosing coroutine
_SUSPEND = object()


@runtime_checkable
class Future(Protocol):
    """Suspendable computation protocol"""

    def poll(self, ctx: Context) -> Poll:
        """Advance the computation; ready with a value or pending"""
        ...


def current_context() -> Context:
    """
    Context of the poll in progress

    Raises:
        RuntimeUsageError: no poll is running (awaited outside a runtime)
    """
    ctx = _current_context.get()
    if ctx is None:
        raise RuntimeUsageError("Future awaited outside of a blockon runtime")
    return ctx


class ExtFuture(ABC, Generic[T]):
    """
    Cancellable computation contract

    ``abort`` never produces a result by itself; the next ``poll`` has to
    observe it. Subclass ``CancellableFuture`` or ``UncancellableFuture``
    rather than this class.
    """

    cancellable: ClassVar[bool] = False

    @abstractmethod
    def poll(self, ctx: Context) -> Poll[T]:
        ...

    @abstractmethod
    def abort(self) -> None:
        ...

    def __await__(self) -> Generator[object, None, T]:
        while True:
            result = self.poll(current_context())
            if result.is_ready():
                return result.value
            yield _SUSPEND


class CancellableFuture(ExtFuture[T]):
    """A future that honours ``abort``"""

    cancellable: ClassVar[bool] = True

    @abstractmethod
    def abort(self) -> None:
        """Request early termination; must be idempotent"""
        ...


class UncancellableFuture(ExtFuture[T]):
    """A future whose ``abort`` is a no-op; it always runs to completion"""

    cancellable: ClassVar[bool] = False

    def abort(self) -> None:
        pass


class FutureWrapper(UncancellableFuture[T]):
    """Wraps a plain future so it satisfies the ``ExtFuture`` contract"""

    def __init__(self, inner: Future):
        self.inner = inner

    def poll(self, ctx: Context) -> Poll[T]:
        return self.inner.poll(ctx)

    def __repr__(self) -> str:
        return f"FutureWrapper({self.inner!r})"


class CoroutineFuture(UncancellableFuture[T]):
    """
    Drives a coroutine, one ``send`` per poll

    Futures awaited inside the coroutine are polled with the context of the
    enclosing poll, so their wakers address the runtime thread. Only blockon
    futures may be awaited: a coroutine that suspends on anything else (an
    asyncio sleep, for example) raises ``RuntimeUsageError``.
    """

    def __init__(self, coro: Coroutine[Any, Any, T]):
        self._coro = coro
        self._done = False

    def poll(self, ctx: Context) -> Poll[T]:
        if self._done:
            raise FutureCompletedError(
                f"Coroutine {self._name} polled after completion"
            )

        token = _current_context.set(ctx)
        try:
            yielded = self._coro.send(None)
        except StopIteration as stop:
            self._done = True
            return Poll.ready(stop.value)
        finally:
            _current_context.reset(token)

        if yielded is not _SUSPEND:
            self._done = True
            self._coro.close()
            raise RuntimeUsageError(
                f"Coroutine {self._name} awaited an object blockon cannot wake: "
                f"{yielded!r}",
                {"yielded": repr(yielded)},
            )

        return Poll.pending()

    @property
    def _name(self) -> str:
        return getattr(self._coro, "__qualname__", repr(self._coro))

    def __repr__(self) -> str:
        return f"CoroutineFuture({self._name})"


def adapt(obj: Union[Future, Coroutine[Any, Any, T]]) -> UncancellableFuture[T]:
    """
    Adapt a plain future or a coroutine into an ``ExtFuture``

    The result is never cancellable, even when ``obj`` is: its ``abort`` is
    permanently a no-op.

    Raises:
        TypeError: ``obj`` is neither a future nor a coroutine
    """
    if inspect.iscoroutine(obj):
        return CoroutineFuture(obj)
    if isinstance(obj, Future):
        return FutureWrapper(obj)
    raise TypeError(f"Cannot adapt {type(obj).__name__}: not a future or coroutine")


def is_cancellable(obj: Any) -> bool:
    """True if ``obj`` is an ``ExtFuture`` that honours ``abort``"""
    return isinstance(obj, ExtFuture) and obj.cancellable
