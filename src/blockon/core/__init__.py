"""blockon core contracts and primitives"""

from .errors import (
    BlockOnError,
    ConstructionError,
    PermutationMismatchError,
    PoisonedStateError,
    FutureCompletedError,
    RuntimeUsageError,
    PlanError,
    ConfigError,
)
from .waker import Parker, ThreadHandle, Waker, current, park
from .poll import Poll, PollState, Context
from .abort import AbortFlag
from .sync import PoisonLock
from .future import (
    Future,
    ExtFuture,
    CancellableFuture,
    UncancellableFuture,
    FutureWrapper,
    CoroutineFuture,
    adapt,
    is_cancellable,
    current_context,
)

__all__ = [
    # Errors
    "BlockOnError",
    "ConstructionError",
    "PermutationMismatchError",
    "PoisonedStateError",
    "FutureCompletedError",
    "RuntimeUsageError",
    "PlanError",
    "ConfigError",
    # Waking
    "Parker",
    "ThreadHandle",
    "Waker",
    "current",
    "park",
    # Poll
    "Poll",
    "PollState",
    "Context",
    # Abort
    "AbortFlag",
    # Sync
    "PoisonLock",
    # Futures
    "Future",
    "ExtFuture",
    "CancellableFuture",
    "UncancellableFuture",
    "FutureWrapper",
    "CoroutineFuture",
    "adapt",
    "is_cancellable",
    "current_context",
]
