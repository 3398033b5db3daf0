"""
Poll tracing

Records every poll attempt the runtime makes:
- poll outcome and timing
- whether an abort was forwarded before the poll
- how often the runtime parked
"""

import time
import logging
from collections import deque
from typing import Any, Dict, List, Optional


class PollTrace:
    """One poll attempt"""

    def __init__(
        self,
        run_id: int,
        attempt: int,
        future: str,
        abort_requested: bool = False,
        status: str = "started",
        ts_start_ms: Optional[float] = None,
        ts_end_ms: Optional[float] = None,
        error: Optional[Dict[str, Any]] = None,
    ):
        self.run_id = run_id
        self.attempt = attempt
        self.future = future
        self.abort_requested = abort_requested
        self.status = status
        self.ts_start_ms = ts_start_ms or time.time() * 1000
        self.ts_end_ms = ts_end_ms
        self.error = error

    def complete(self, status: str, error: Optional[Dict[str, Any]] = None) -> None:
        """Finish the trace entry"""
        self.status = status
        self.ts_end_ms = time.time() * 1000
        if error:
            self.error = error

    def duration_ms(self) -> Optional[float]:
        if self.ts_end_ms is not None:
            return self.ts_end_ms - self.ts_start_ms
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "attempt": self.attempt,
            "future": self.future,
            "abort_requested": self.abort_requested,
            "status": self.status,
            "ts_start_ms": self.ts_start_ms,
            "ts_end_ms": self.ts_end_ms,
            "duration_ms": self.duration_ms(),
            "error": self.error,
        }


class PollTracer:
    """
    Poll tracer

    Collects ``PollTrace`` entries across runs. A run is one ``block_on``
    call; attempts are numbered from 1 inside each run.
    Only the newest ``max_traces`` entries are kept; the summary counts cover
    every poll since the last ``clear_traces``.
    """

    def __init__(self, enable_detailed_logging: bool = True, max_traces: int = 1000):
        """
        Args:
            enable_detailed_logging: log every poll at DEBUG level
            max_traces: number of recent poll entries to retain
        """
        self.enable_detailed_logging = enable_detailed_logging
        self._traces: "deque[PollTrace]" = deque(maxlen=max_traces)
        self._total_polls = 0
        self._status_counts: Dict[str, int] = {}
        self._total_duration_ms = 0.0
        self._timed_polls = 0
        self._current_run = 0
        self._current_attempt = 0
        self._parks = 0
        self._aborts = 0

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def start_run(self, future: str) -> int:
        """Start tracing a new block_on call"""
        self._current_run += 1
        self._current_attempt = 0

        if self.enable_detailed_logging:
            self.logger.debug(f"Starting run {self._current_run}: {future}")

        return self._current_run

    def start_poll(self, future: str, abort_requested: bool = False) -> PollTrace:
        """Start tracing one poll attempt"""
        self._current_attempt += 1
        self._total_polls += 1
        if abort_requested:
            self._aborts += 1

        trace = PollTrace(
            run_id=self._current_run,
            attempt=self._current_attempt,
            future=future,
            abort_requested=abort_requested,
        )
        self._traces.append(trace)

        if self.enable_detailed_logging:
            self.logger.debug(
                f"Run {trace.run_id} poll {trace.attempt}"
                f"{' (abort requested)' if abort_requested else ''}"
            )

        return trace

    def complete_poll(
        self, trace: PollTrace, status: str, error: Optional[Exception] = None
    ) -> None:
        """
        Finish tracing one poll attempt

        Args:
            trace: Entry returned by ``start_poll``
            status: "ready", "pending" or "error"
            error: Exception raised by the poll, if any
        """
        error_dict = None
        if error:
            error_dict = {
                "type": type(error).__name__,
                "message": str(error),
                "details": getattr(error, "details", None),
            }

        trace.complete(status, error_dict)
        self._status_counts[status] = self._status_counts.get(status, 0) + 1
        duration = trace.duration_ms()
        if duration is not None:
            self._total_duration_ms += duration
            self._timed_polls += 1

        if self.enable_detailed_logging:
            self.logger.debug(
                f"Run {trace.run_id} poll {trace.attempt}: {status} "
                f"({trace.duration_ms():.3f}ms)"
            )
            if error:
                self.logger.error(f"Run {trace.run_id} poll {trace.attempt} failed: {error}")

    def record_park(self) -> None:
        self._parks += 1

    def get_trace_summary(self) -> Dict[str, Any]:
        """Counts and timing over all recorded polls"""
        if not self._total_polls:
            return {}

        status_counts = dict(self._status_counts)

        return {
            "total_runs": self._current_run,
            "total_polls": self._total_polls,
            "ready_polls": status_counts.get("ready", 0),
            "pending_polls": status_counts.get("pending", 0),
            "failed_polls": status_counts.get("error", 0),
            "parks": self._parks,
            "aborts_forwarded": self._aborts,
            "status_distribution": status_counts,
            "average_duration_ms": (
                self._total_duration_ms / self._timed_polls if self._timed_polls else 0
            ),
        }

    def get_recent_traces(self, limit: int = 50) -> List[PollTrace]:
        return list(self._traces)[-limit:]

    def get_run_traces(self, run_id: int) -> List[PollTrace]:
        return [trace for trace in self._traces if trace.run_id == run_id]

    def export(self) -> Dict[str, Any]:
        """Traces and summary as plain data"""
        return {
            "polls": [trace.to_dict() for trace in self._traces],
            "summary": self.get_trace_summary(),
            "export_timestamp": int(time.time() * 1000),
        }

    def clear_traces(self) -> None:
        """Drop all recorded traces"""
        self._traces.clear()
        self._total_polls = 0
        self._status_counts.clear()
        self._total_duration_ms = 0.0
        self._timed_polls = 0
        self._current_run = 0
        self._current_attempt = 0
        self._parks = 0
        self._aborts = 0

        if self.enable_detailed_logging:
            self.logger.info("Cleared all traces")


class TracingMixin:
    """
    Tracing mixin

    Gives a component optional poll tracing
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tracer: Optional[PollTracer] = None

    def set_tracer(self, tracer: Optional[PollTracer]) -> None:
        self.tracer = tracer

    def trace_run_start(self, future: str) -> None:
        if self.tracer:
            self.tracer.start_run(future)

    def trace_poll_start(
        self, future: str, abort_requested: bool = False
    ) -> Optional[PollTrace]:
        """Start poll tracing (when a tracer is set)"""
        if self.tracer:
            return self.tracer.start_poll(future, abort_requested)
        return None

    def trace_poll_complete(
        self,
        trace: Optional[PollTrace],
        status: str,
        error: Optional[Exception] = None,
    ) -> None:
        """Finish poll tracing (when a tracer is set)"""
        if self.tracer and trace:
            self.tracer.complete_poll(trace, status, error)

    def trace_park(self) -> None:
        if self.tracer:
            self.tracer.record_park()
