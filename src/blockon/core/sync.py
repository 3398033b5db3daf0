"""
Poisonable lock

A lock around shared state that remembers when a holder raised while holding
it. Once poisoned, every later acquisition fails.
"""

import threading
from contextlib import contextmanager
from typing import Generic, Iterator, Optional, TypeVar

from .errors import PoisonedStateError

T = TypeVar("T")


class PoisonLock(Generic[T]):
    """Mutex owning a value, poisoned when a holder raises"""

    def __init__(self, value: T, name: str = "state"):
        self._lock = threading.Lock()
        self._value = value
        self._name = name
        self._poison: Optional[BaseException] = None

    @property
    def poisoned(self) -> bool:
        return self._poison is not None

    @contextmanager
    def locked(self) -> Iterator[T]:
        """
        Hold the lock and yield the guarded value

        Raises:
            PoisonedStateError: a previous holder raised while holding the lock
        """
        with self._lock:
            if self._poison is not None:
                raise PoisonedStateError(
                    f"Lock guarding {self._name} is poisoned",
                    {"cause": repr(self._poison)},
                )
            try:
                yield self._value
            except BaseException as e:
                self._poison = e
                raise
