"""
Blocking runtime tests

Poll/park loop, abort forwarding, wake-before-park safety and error
propagation.
"""

import threading

import pytest

from blockon.core.abort import AbortFlag
from blockon.core.errors import RuntimeUsageError
from blockon.core.future import CancellableFuture, UncancellableFuture, adapt
from blockon.core.poll import Poll
from blockon.executor.runtime import SimpleRuntime
from blockon.tasks.counter import count


def run_in_thread(fn, timeout: float = 5.0):
    """Run ``fn`` on a worker thread; fail instead of hanging the test run"""
    outcome = {}

    def target():
        try:
            outcome["value"] = fn()
        except Exception as e:
            outcome["error"] = e

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    thread.join(timeout)
    assert not thread.is_alive(), "runtime did not finish (lost wakeup?)"
    if "error" in outcome:
        raise outcome["error"]
    return outcome["value"]


class AbortRecorder(CancellableFuture):
    """Pending until aborted, then ready with the number of abort calls"""

    def __init__(self):
        self.abort_calls = 0
        self.polls = 0

    def abort(self):
        self.abort_calls += 1

    def poll(self, ctx):
        self.polls += 1
        if self.abort_calls:
            return Poll.ready(self.abort_calls)
        ctx.waker.wake()
        return Poll.pending()


class WakeBeforePark(UncancellableFuture):
    """First poll has another thread fire the waker, then returns pending"""

    def __init__(self):
        self.polls = 0
        self.woken_before_return = False

    def poll(self, ctx):
        self.polls += 1
        if self.polls == 1:
            waker_thread = threading.Thread(target=ctx.waker.wake)
            waker_thread.start()
            waker_thread.join()
            self.woken_before_return = True
            return Poll.pending()
        return Poll.ready("resumed")


class LateWake(UncancellableFuture):
    """Pending without waking; a timer wakes the runtime later"""

    def __init__(self, delay: float):
        self.delay = delay
        self.polls = 0
        self.wakers = []

    def poll(self, ctx):
        self.polls += 1
        self.wakers.append(ctx.waker)
        if self.polls == 1:
            threading.Timer(self.delay, ctx.waker.wake).start()
            return Poll.pending()
        return Poll.ready(self.polls)


class TestBlockOn:
    """Basic loop behaviour"""

    def test_returns_future_value(self, runtime):
        assert runtime.block_on(count(4)) == 4

    def test_run_to_completion_alias(self, runtime):
        assert runtime.run_to_completion(count(2)) == 2

    def test_rejects_plain_future(self, runtime):
        class Plain:
            def poll(self, ctx):
                return Poll.ready(1)

        with pytest.raises(TypeError):
            runtime.block_on(Plain())
        assert runtime.block_on(adapt(Plain())) == 1

    def test_runs_coroutine(self, runtime):
        async def body():
            return await count(3) * 2

        assert runtime.block_on(adapt(body())) == 6

    def test_sequential_reuse(self, runtime, tracer):
        assert runtime.block_on(count(3)) == 3
        assert runtime.block_on(count(5)) == 5

        summary = tracer.get_trace_summary()
        assert summary["total_runs"] == 2
        assert len(tracer.get_run_traces(1)) == 3
        assert len(tracer.get_run_traces(2)) == 5

    def test_without_tracer(self):
        runtime = SimpleRuntime(AbortFlag())
        assert runtime.tracer is None
        assert runtime.block_on(count(3)) == 3

    def test_fresh_waker_per_poll(self):
        future = LateWake(0.01)
        result = run_in_thread(lambda: SimpleRuntime(AbortFlag()).block_on(future))

        assert result == 2
        assert future.wakers[0] is not future.wakers[1]
        assert future.wakers[0].will_wake(future.wakers[1])


class TestWakeups:
    """Wakes from other threads"""

    def test_wake_before_park(self):
        """A wake fired before the runtime parks is not lost"""
        future = WakeBeforePark()
        result = run_in_thread(lambda: SimpleRuntime(AbortFlag()).block_on(future))

        assert future.woken_before_return
        assert result == "resumed"
        assert future.polls == 2

    def test_wake_after_park(self):
        future = LateWake(0.05)
        result = run_in_thread(lambda: SimpleRuntime(AbortFlag()).block_on(future))
        assert result == 2


class TestAbortForwarding:
    """The abort flag is checked before every poll"""

    def test_abort_forwarded_once_flag_is_raised(self, runtime, abort_flag):
        """No abort while the flag is clear; forwarded on the poll after it is set"""

        class RaisesFlag(AbortRecorder):
            def poll(self, ctx):
                result = super().poll(ctx)
                if self.polls == 3:
                    assert self.abort_calls == 0
                    abort_flag.set()
                return result

        future = RaisesFlag()
        assert runtime.block_on(future) == 1
        assert future.polls == 4

    def test_abort_forwarded_before_first_poll(self, runtime, abort_flag, tracer):
        abort_flag.set()
        future = AbortRecorder()

        assert runtime.block_on(future) == 1
        assert future.polls == 1
        assert tracer.get_recent_traces()[0].abort_requested is True

    def test_flag_is_shared_not_copied(self, abort_flag):
        runtime = SimpleRuntime(abort_flag)
        assert runtime.abort is abort_flag


class TestErrors:
    """Failures inside poll"""

    def test_poll_exception_propagates(self, runtime, tracer):
        class Broken(UncancellableFuture):
            def poll(self, ctx):
                raise KeyError("boom")

        with pytest.raises(KeyError):
            runtime.block_on(Broken())

        trace = tracer.get_recent_traces(1)[0]
        assert trace.status == "error"
        assert trace.error["type"] == "KeyError"

    def test_runtime_usable_after_failure(self, runtime):
        class Broken(UncancellableFuture):
            def poll(self, ctx):
                raise ValueError("boom")

        with pytest.raises(ValueError):
            runtime.block_on(Broken())
        assert runtime.block_on(count(2)) == 2

    def test_nested_block_on(self, runtime):
        class Nested(UncancellableFuture):
            def poll(self, ctx):
                return Poll.ready(runtime.block_on(count(1)))

        with pytest.raises(RuntimeUsageError):
            runtime.block_on(Nested())

    def test_foreign_awaitable_fails_instead_of_hanging(self, runtime):
        class BareYield:
            def __await__(self):
                yield

        async def body():
            await count(2)
            await BareYield()

        with pytest.raises(RuntimeUsageError):
            run_in_thread(lambda: runtime.block_on(adapt(body())))
