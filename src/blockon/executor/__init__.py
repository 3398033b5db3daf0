"""blockon runtime"""

from .runtime import SimpleRuntime
from .tracing import PollTrace, PollTracer, TracingMixin

__all__ = [
    "SimpleRuntime",
    "PollTrace",
    "PollTracer",
    "TracingMixin",
]
