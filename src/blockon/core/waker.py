"""
Thread parking and wake handles

Every thread owns one ``Parker``: a single-slot permit. ``unpark`` stores the
permit, ``park`` consumes it, waiting only while it is absent. A wake that
arrives before the park is therefore never lost, and several wakes before one
park collapse into a single permit.
"""

import threading
import weakref
from typing import Optional


class Parker:
    """Single-permit park/unpark primitive for one thread"""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._permit = False

    def park(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the permit is available, then consume it

        Args:
            timeout: Seconds to wait at most, ``None`` waits forever

        Returns:
            True if the permit was consumed, False on timeout
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._permit, timeout):
                return False
            self._permit = False
            return True

    def unpark(self) -> None:
        """Make the permit available and wake the parked thread, if any"""
        with self._cond:
            self._permit = True
            self._cond.notify()

    @property
    def has_permit(self) -> bool:
        with self._cond:
            return self._permit


_parkers_lock = threading.Lock()
_parkers: "weakref.WeakKeyDictionary[threading.Thread, Parker]" = (
    weakref.WeakKeyDictionary()
)


def _parker_for(thread: threading.Thread) -> Parker:
    with _parkers_lock:
        parker = _parkers.get(thread)
        if parker is None:
            parker = Parker()
            _parkers[thread] = parker
        return parker


class ThreadHandle:
    """Handle to a thread that can be unparked from anywhere"""

    __slots__ = ("thread", "_parker")

    def __init__(self, thread: threading.Thread):
        self.thread = thread
        self._parker = _parker_for(thread)

    def unpark(self) -> None:
        self._parker.unpark()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ThreadHandle):
            return NotImplemented
        return self.thread is other.thread

    def __hash__(self) -> int:
        return id(self.thread)

    def __repr__(self) -> str:
        return f"ThreadHandle({self.thread.name!r})"


def current() -> ThreadHandle:
    """Handle to the calling thread"""
    return ThreadHandle(threading.current_thread())


def park(timeout: Optional[float] = None) -> bool:
    """Park the calling thread until it is unparked (or the timeout passes)"""
    return _parker_for(threading.current_thread()).park(timeout)


class Waker:
    """
    Wake handle

    Addresses the thread that was current when the waker was created. ``wake``
    may be called from any thread, any number of times, before or after that
    thread parks.
    """

    __slots__ = ("_handle",)

    def __init__(self, handle: ThreadHandle):
        self._handle = handle

    @classmethod
    def for_current_thread(cls) -> "Waker":
        return cls(current())

    @property
    def thread(self) -> threading.Thread:
        return self._handle.thread

    def wake(self) -> None:
        """Unpark the addressed thread"""
        self._handle.unpark()

    def will_wake(self, other: "Waker") -> bool:
        """True if both wakers address the same thread"""
        return self._handle == other._handle

    def __repr__(self) -> str:
        return f"Waker({self._handle.thread.name!r})"
