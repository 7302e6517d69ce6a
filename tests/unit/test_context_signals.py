"""Unit tests for query contexts."""
import datetime
import time

import pytest
from sqly.context import Context
from sqly.exceptions import CancelledError, ContextError
from sqly.exceptions import DeadlineExceededError


def test_background_never_done():
    ctx = Context.background()
    assert not ctx.done()
    assert ctx.err() is None
    assert ctx.deadline is None
    assert ctx.remaining() is None
    assert not ctx.is_cancellable()
    ctx.check()


def test_with_cancel():
    """Test cancelling a child leaves the parent live"""
    parent = Context.background()
    child, cancel = parent.with_cancel()
    assert child.is_cancellable()
    assert not child.done()

    cancel()
    assert child.done()
    assert isinstance(child.err(), CancelledError)
    assert not parent.done()

    with pytest.raises(CancelledError, match='context canceled'):
        child.check()


def test_parent_cancel_propagates():
    parent, cancel = Context.background().with_cancel()
    child = parent.with_timeout(60)
    grandchild, _ = child.with_cancel()

    cancel()
    assert isinstance(grandchild.err(), CancelledError)


def test_with_timeout():
    ctx = Context.background().with_timeout(60)
    assert not ctx.done()
    assert 0 < ctx.remaining() <= 60

    expired = Context.background().with_timeout(0)
    assert expired.remaining() == 0.0
    assert isinstance(expired.err(), DeadlineExceededError)


def test_timeout_expires():
    ctx = Context.background().with_timeout(0.05)
    time.sleep(0.1)
    with pytest.raises(DeadlineExceededError, match='context deadline exceeded'):
        ctx.check()


def test_earliest_deadline_wins():
    """Test a child cannot extend its parent's deadline"""
    parent = Context.background().with_timeout(1)
    child = parent.with_timeout(60)
    assert child.deadline == parent.deadline
    assert child.remaining() <= 1


def test_with_deadline():
    past = datetime.datetime.now(tz=datetime.timezone.utc) - datetime.timedelta(seconds=1)
    assert Context.background().with_deadline(past).done()

    future = datetime.datetime.now() + datetime.timedelta(minutes=1)
    assert not Context.background().with_deadline(future).done()


def test_cancel_takes_precedence_over_deadline():
    ctx, cancel = Context.background().with_timeout(0).with_cancel()
    cancel()
    assert isinstance(ctx.err(), CancelledError)


def test_error_hierarchy():
    assert issubclass(CancelledError, ContextError)
    assert issubclass(DeadlineExceededError, ContextError)
    assert issubclass(DeadlineExceededError, TimeoutError)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
