"""
Poll result and poll context

A poll either completes with a value or reports that the future is not ready
yet. The context hands the future the waker for the current attempt.
"""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from .waker import Waker

T = TypeVar("T")


class PollState(str, Enum):
    """Outcome of a single poll"""

    READY = "ready"
    PENDING = "pending"


class Poll(Generic[T]):
    """Result of polling a future once"""

    __slots__ = ("state", "_value")

    def __init__(self, state: PollState, value: Optional[T] = None):
        self.state = state
        self._value = value

    @classmethod
    def ready(cls, value: T) -> "Poll[T]":
        """Completed with a value"""
        return cls(PollState.READY, value)

    @classmethod
    def pending(cls) -> "Poll[Any]":
        """Not ready yet"""
        return _PENDING

    def is_ready(self) -> bool:
        return self.state is PollState.READY

    def is_pending(self) -> bool:
        return self.state is PollState.PENDING

    @property
    def value(self) -> T:
        """The completed value; only valid once the poll is ready"""
        if self.state is not PollState.READY:
            raise ValueError("Pending poll has no value")
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Poll):
            return NotImplemented
        return self.state is other.state and self._value == other._value

    def __hash__(self) -> int:
        return hash((self.state, self._value))

    def __repr__(self) -> str:
        if self.is_ready():
            return f"Poll.ready({self._value!r})"
        return "Poll.pending()"


_PENDING: Poll[Any] = Poll(PollState.PENDING)


class Context:
    """
    Poll context

    Built fresh for every poll attempt. A future that returns pending must
    arrange for ``waker.wake()`` to be called once it can make progress,
    otherwise the runtime stays parked.
    """

    __slots__ = ("waker",)

    def __init__(self, waker: Waker):
        self.waker = waker

    def __repr__(self) -> str:
        return f"Context(waker={self.waker!r})"
