import threading
import time

from src.utils.core.cancellation import QueryCancelledError, QueryContext


def test_background_never_cancelled():
    ctx = QueryContext.background()
    assert not ctx.is_cancelled()
    assert ctx.remaining() is None
    ctx.raise_if_cancelled()


def test_explicit_cancel():
    ctx = QueryContext.background()
    ctx.cancel()

    assert ctx.is_cancelled()
    err = ctx.error()
    assert isinstance(err, QueryCancelledError)
    assert not err.deadline_exceeded
    assert not err.is_retryable()


def test_deadline_expiry():
    ctx = QueryContext.with_timeout(0.01)
    time.sleep(0.02)

    assert ctx.expired()
    assert ctx.remaining() == 0.0
    assert ctx.error().deadline_exceeded


def test_wait_runs_full_duration_when_not_cancelled():
    ctx = QueryContext.background()
    started = time.monotonic()
    assert ctx.wait(0.02) is False
    assert time.monotonic() - started >= 0.02


def test_wait_cut_short_by_deadline():
    ctx = QueryContext.with_timeout(0.03)
    started = time.monotonic()
    assert ctx.wait(5.0) is True
    assert time.monotonic() - started < 1.0


def test_wait_interrupted_by_cancel_from_other_thread():
    ctx = QueryContext.background()
    timer = threading.Timer(0.03, ctx.cancel)
    timer.start()
    try:
        started = time.monotonic()
        assert ctx.wait(5.0) is True
        assert time.monotonic() - started < 1.0
    finally:
        timer.cancel()


def test_child_inherits_parent_cancellation():
    parent = QueryContext.background()
    child = QueryContext.with_timeout(10.0, parent=parent)

    timer = threading.Timer(0.03, parent.cancel)
    timer.start()
    try:
        assert child.wait(5.0) is True
    finally:
        timer.cancel()
    assert not child.error().deadline_exceeded


def test_child_deadline_bounded_by_parent():
    parent = QueryContext.with_timeout(1.0)
    child = QueryContext.with_timeout(60.0, parent=parent)
    assert child.remaining() <= 1.0


def test_child_cancel_does_not_affect_parent():
    parent = QueryContext.background()
    child = QueryContext(parent=parent)
    child.cancel()

    assert child.is_cancelled()
    assert not parent.is_cancelled()
