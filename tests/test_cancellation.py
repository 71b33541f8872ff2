"""
Tests for CallContext.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor

from pokeproxy.cancellation import CallContext


class TestCallContext:
    def test_context_without_deadline_never_finishes(self):
        ctx = CallContext()
        assert not ctx.done
        assert ctx.remaining() is None
        assert ctx.timeout_for(30.0) == 30.0
        assert ctx.reason() == ""

    def test_cancel(self):
        ctx = CallContext()
        ctx.cancel()
        assert ctx.done
        assert ctx.reason() == "context cancelled"
        assert ctx.wait(1.0) is False

    def test_deadline(self):
        ctx = CallContext(timeout=0.01)
        time.sleep(0.02)
        assert ctx.expired
        assert ctx.done
        assert ctx.remaining() == 0.0
        assert ctx.reason() == "context deadline exceeded"

    def test_timeout_capped_by_deadline(self):
        ctx = CallContext(timeout=5.0)
        assert ctx.timeout_for(30.0) <= 5.0
        assert ctx.timeout_for(1.0) == 1.0

    def test_wait_completes_without_cancel(self):
        ctx = CallContext()
        assert ctx.wait(0.01) is True

    def test_wait_interrupted_by_cancel(self):
        ctx = CallContext()
        threading.Timer(0.02, ctx.cancel).start()

        start = time.monotonic()
        assert ctx.wait(5.0) is False
        assert time.monotonic() - start < 1.0

    def test_wait_longer_than_deadline(self):
        ctx = CallContext(timeout=0.02)
        start = time.monotonic()
        assert ctx.wait(5.0) is False
        assert time.monotonic() - start < 1.0


class TestWaitFor:
    def test_returns_when_future_finishes(self):
        ctx = CallContext(timeout=5.0)
        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(time.sleep, 0.01)
            assert ctx.wait_for(future) is True

    def test_cancel_interrupts_wait(self):
        ctx = CallContext()
        future = Future()
        threading.Timer(0.02, ctx.cancel).start()

        start = time.monotonic()
        assert ctx.wait_for(future) is False
        assert time.monotonic() - start < 1.0

    def test_deadline_interrupts_wait(self):
        ctx = CallContext(timeout=0.02)
        start = time.monotonic()
        assert ctx.wait_for(Future()) is False
        assert time.monotonic() - start < 1.0

    def test_already_cancelled_does_not_block(self):
        ctx = CallContext()
        ctx.cancel()
        assert ctx.wait_for(Future()) is False

    def test_callbacks_are_released(self):
        ctx = CallContext()
        future = Future()
        future.set_result(None)
        assert ctx.wait_for(future) is True
        assert ctx._callbacks == []
