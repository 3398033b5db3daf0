"""
blockon - a minimal single-threaded cooperative runtime

Drives one future at a time to completion on the calling thread:
- poll/park loop with per-thread wake permits
- advisory cancellation through a shared abort flag
- example futures: a self-rescheduling counter and a cancellable permuter
"""

__version__ = "0.1.0"

from .core import (
    # Errors
    BlockOnError,
    ConstructionError,
    PermutationMismatchError,
    PoisonedStateError,
    FutureCompletedError,
    RuntimeUsageError,
    PlanError,
    ConfigError,
    # Core classes
    AbortFlag,
    Context,
    Poll,
    PollState,
    Waker,
    Future,
    ExtFuture,
    CancellableFuture,
    UncancellableFuture,
    adapt,
    is_cancellable,
)
from .executor import SimpleRuntime, PollTracer
from .tasks import count, permute, CounterFuture, PermuteFuture

__all__ = [
    "__version__",
    # Errors
    "BlockOnError",
    "ConstructionError",
    "PermutationMismatchError",
    "PoisonedStateError",
    "FutureCompletedError",
    "RuntimeUsageError",
    "PlanError",
    "ConfigError",
    # Core
    "AbortFlag",
    "Context",
    "Poll",
    "PollState",
    "Waker",
    "Future",
    "ExtFuture",
    "CancellableFuture",
    "UncancellableFuture",
    "adapt",
    "is_cancellable",
    # Runtime
    "SimpleRuntime",
    "PollTracer",
    # Tasks
    "count",
    "permute",
    "CounterFuture",
    "PermuteFuture",
]
