"""
Permuter future

Each poll simulates a slice of blocking work, then performs one transposition
that moves the first misplaced element into place. Completes with the number
of transpositions once the sequence equals the target. Cancellable: after
``abort`` the next poll returns the steps taken so far.
"""

import logging
import threading
import time
from collections import Counter
from typing import Hashable, List, Optional, Sequence

from ..core.errors import (
    ConstructionError,
    FutureCompletedError,
    PermutationMismatchError,
)
from ..core.future import CancellableFuture
from ..core.poll import Context, Poll
from ..core.sync import PoisonLock

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 2.0


def transposition_step(current: List[Hashable], target: Sequence[Hashable]) -> bool:
    """
    Fix the first misplaced position of ``current`` in place

    Finds the first index ``i`` where ``current`` differs from ``target`` and
    swaps in the first element equal to ``target[i]``.

    Returns:
        True if a swap happened, False if ``current`` already equals ``target``
    """
    for i, wanted in enumerate(target):
        if current[i] != wanted:
            break
    else:
        return False

    # positions before i already match, so the swap partner lies after i
    j = current.index(wanted, i + 1)
    current[i], current[j] = current[j], current[i]
    return True


class PermuteFuture(CancellableFuture[int]):
    """
    Steps ``base`` towards ``target`` one transposition per poll

    Finishes in at most ``len(base) - 1`` steps.
    """

    def __init__(
        self,
        base: Sequence[Hashable],
        target: Sequence[Hashable],
        delay: float = DEFAULT_DELAY_SECONDS,
    ):
        if len(base) != len(target):
            raise PermutationMismatchError(
                "Both lists must have the same length",
                {"base_length": len(base), "target_length": len(target)},
            )
        if Counter(base) != Counter(target):
            raise PermutationMismatchError(
                "Both lists must have the same elements",
                {"base": list(base), "target": list(target)},
            )
        if delay < 0:
            raise ConstructionError(
                f"delay must not be negative: {delay}", {"delay": delay}
            )

        self._current: PoisonLock[List[Hashable]] = PoisonLock(
            list(base), name="current permutation"
        )
        self.target = list(target)
        self.delay = delay
        self._steps = 0
        self._aborted = threading.Event()
        self._done = False

    @property
    def current(self) -> List[Hashable]:
        """Snapshot of the current sequence"""
        with self._current.locked() as current:
            return list(current)

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def aborted(self) -> bool:
        return self._aborted.is_set()

    def abort(self) -> None:
        self._aborted.set()

    def permute(self) -> None:
        """Execute one step of the permutation"""
        with self._current.locked() as current:
            if transposition_step(current, self.target):
                self._steps += 1

    def poll(self, ctx: Context) -> Poll[int]:
        if self._done:
            raise FutureCompletedError("Permuter polled after completion")

        if self._aborted.is_set():
            logger.info(f"Permutation aborted after {self._steps} steps")
            self._done = True
            return Poll.ready(self._steps)

        # simulated work, never inside the lock
        time.sleep(self.delay)

        self.permute()
        with self._current.locked() as current:
            finished = current == self.target
            logger.debug(f"Current {current}, target {self.target}")

        if finished:
            self._done = True
            return Poll.ready(self._steps)

        ctx.waker.wake()
        return Poll.pending()

    def __repr__(self) -> str:
        return f"PermuteFuture(target={self.target})"


def permute(
    base: Sequence[Hashable],
    target: Sequence[Hashable],
    delay: Optional[float] = None,
) -> PermuteFuture:
    """
    Future permuting ``base`` into ``target``

    Raises:
        PermutationMismatchError: lengths or element multisets differ
    """
    return PermuteFuture(
        base, target, DEFAULT_DELAY_SECONDS if delay is None else delay
    )
