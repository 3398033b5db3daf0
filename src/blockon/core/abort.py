"""
Shared abort flag

A cancellation token handed to both the signal source and the runtime. It
goes from unset to set once and never resets.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class AbortFlag:
    """
    Externally settable abort flag

    The signal source calls ``set``; the runtime only reads ``is_set`` before
    each poll. The flag is advisory: futures decide whether to honour it.
    """

    def __init__(self):
        self._event = threading.Event()

    def set(self) -> None:
        """Request an abort; calls after the first one are no-ops"""
        if not self._event.is_set():
            logger.info("Abort requested")
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def __bool__(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"AbortFlag(set={self._event.is_set()})"
