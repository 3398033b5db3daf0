"""
blockon exception definitions

Errors are grouped by where they happen: future construction, shared state
access, runtime usage, plan loading and configuration.
"""

from typing import Any, Dict, Optional


class BlockOnError(Exception):
    """blockon base exception"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConstructionError(BlockOnError):
    """
    Future construction error

    Raised while building a future from invalid arguments. The future is never
    created, so there is nothing to poll or resume.
    """
    pass


class PermutationMismatchError(ConstructionError):
    """
    Base and target sequences are not permutations of each other

    Either the lengths differ or the element multisets differ.
    """
    pass


class PoisonedStateError(BlockOnError):
    """
    Shared state poisoned

    A previous holder of the lock raised while the state was half-updated.
    Every later access fails; there is no recovery path.
    """
    pass


class FutureCompletedError(BlockOnError):
    """
    Future polled after completion

    A future that already returned a ready result must not be polled again.
    """
    pass


class RuntimeUsageError(BlockOnError):
    """
    Runtime misuse

    For example calling block_on from inside a poll on the same thread.
    """
    pass


class PlanError(BlockOnError):
    """Run plan cannot be loaded or validated"""
    pass


class ConfigError(BlockOnError):
    """Invalid configuration value"""
    pass
