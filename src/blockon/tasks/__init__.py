"""Example futures"""

from .counter import CounterFuture, SharedCounter, count
from .permute import (
    DEFAULT_DELAY_SECONDS,
    PermuteFuture,
    permute,
    transposition_step,
)

__all__ = [
    "CounterFuture",
    "SharedCounter",
    "count",
    "DEFAULT_DELAY_SECONDS",
    "PermuteFuture",
    "permute",
    "transposition_step",
]
