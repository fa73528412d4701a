"""
Tests for the StreamSession state machine.
"""
import asyncio
import logging
import pytest
from unittest.mock import MagicMock
from ipfsio.streaming import StreamSession, CancelToken, SessionState

def test_chunks_forwarded_in_order():
    """Test each chunk reaches on_update in arrival order and is accumulated."""
    seen = []
    on_complete = MagicMock()
    session = StreamSession(on_update=seen.append, on_complete=on_complete)

    for chunk in (b"one", b"two", b"three"):
        assert session.feed(chunk) is True
    result = session.complete()

    assert seen == [b"one", b"two", b"three"]
    on_complete.assert_called_once_with(b"onetwothree")
    assert result.data == b"onetwothree"
    assert result.chunks == 3
    assert result.cancelled is False
    assert session.state is SessionState.TERMINATED

def test_update_returning_false_cancels():
    """Test returning False stops forwarding but keeps buffering."""
    seen = []

    def on_update(chunk):
        seen.append(chunk)
        return sum(len(c) for c in seen) <= 1024

    session = StreamSession(on_update=on_update)
    chunk = b"x" * 600
    assert session.feed(chunk) is True
    assert session.feed(chunk) is False
    assert session.state is SessionState.CANCELLING

    # Bytes still in flight after the abort are kept but not forwarded.
    assert session.feed(b"late") is False
    result = session.complete()

    assert len(seen) == 2
    assert result.cancelled is True
    assert result.data == chunk * 2 + b"late"
    assert len(result.data) >= 1024

def test_none_return_means_continue():
    """Test callbacks that return nothing keep the stream going."""
    session = StreamSession(on_update=lambda chunk: None)
    assert session.feed(b"a") is True
    assert session.feed(b"b") is True

def test_cancel_token_stops_forwarding():
    """Test an external CancelToken stops delivery before the next chunk."""
    token = CancelToken()
    on_update = MagicMock(return_value=True)
    session = StreamSession(on_update=on_update, cancel_token=token)

    session.feed(b"a")
    token.cancel()
    assert session.feed(b"b") is False
    result = session.complete()

    on_update.assert_called_once_with(b"a")
    assert result.cancelled is True
    assert result.data == b"ab"

def test_session_cancel_sets_token():
    """Test cancelling the session is visible through its token."""
    token = CancelToken()
    session = StreamSession(cancel_token=token)
    session.cancel()
    assert token.cancelled
    assert session.cancelled

def test_completion_exactly_once():
    """Test repeated complete() calls reach on_complete only once."""
    on_complete = MagicMock()
    session = StreamSession(on_complete=on_complete)
    session.feed(b"data")

    first = session.complete()
    second = session.complete()

    on_complete.assert_called_once_with(b"data")
    assert first is second

def test_complete_without_chunks():
    """Test a transfer that ended before any data still completes."""
    on_complete = MagicMock()
    result = StreamSession(on_complete=on_complete).complete()
    on_complete.assert_called_once_with(b"")
    assert result.chunks == 0

def test_chunks_after_completion_are_dropped():
    """Test nothing is accepted once the session has terminated."""
    on_update = MagicMock()
    session = StreamSession(on_update=on_update)
    session.complete()
    assert session.feed(b"late") is False
    on_update.assert_not_called()
    assert session.data == b""

def test_update_callback_errors_are_isolated(caplog):
    """Test a failing on_update is logged and the stream continues."""
    on_update = MagicMock(side_effect=ValueError("boom"))
    on_complete = MagicMock()
    session = StreamSession(on_update=on_update, on_complete=on_complete)

    with caplog.at_level(logging.ERROR, logger="ipfsio.streaming"):
        assert session.feed(b"a") is True
        assert session.feed(b"b") is True
        session.complete()

    assert on_update.call_count == 2
    on_complete.assert_called_once_with(b"ab")
    assert "update callback failed" in caplog.text

def test_completion_callback_errors_are_isolated(caplog):
    """Test a failing on_complete does not escape complete()."""
    session = StreamSession(on_complete=MagicMock(side_effect=RuntimeError("nope")))
    with caplog.at_level(logging.ERROR, logger="ipfsio.streaming"):
        result = session.complete()
    assert result.data == b""
    assert "completion callback failed" in caplog.text

def test_sessions_have_distinct_ids():
    """Test every session is keyed by its own request id."""
    assert StreamSession().request_id != StreamSession().request_id

def test_cancel_token_runs_callbacks_once():
    """Test abort callbacks fire once, on the first cancel."""
    token = CancelToken()
    callback = MagicMock()
    token.add_callback(callback)

    token.cancel()
    token.cancel()
    callback.assert_called_once_with()

def test_cancel_token_late_registration_runs_immediately():
    """Test registering on a cancelled token runs the callback at once."""
    token = CancelToken()
    token.cancel()
    callback = MagicMock()
    token.add_callback(callback)
    callback.assert_called_once_with()

def test_cancel_token_remove_callback():
    """Test an unregistered callback is not run."""
    token = CancelToken()
    callback = MagicMock()
    remove = token.add_callback(callback)
    remove()
    token.cancel()
    callback.assert_not_called()

def test_cancel_token_callback_errors_are_isolated(caplog):
    """Test one failing abort callback does not stop the others."""
    token = CancelToken()
    second = MagicMock()
    token.add_callback(MagicMock(side_effect=OSError("already closed")))
    token.add_callback(second)

    with caplog.at_level(logging.ERROR, logger="ipfsio.streaming"):
        token.cancel()
    second.assert_called_once_with()
    assert "Cancel callback failed" in caplog.text

def test_session_cancel_triggers_token_callbacks():
    """Test cancellation via on_update reaches registered abort hooks."""
    token = CancelToken()
    abort = MagicMock()
    token.add_callback(abort)
    session = StreamSession(on_update=lambda chunk: False, cancel_token=token)

    assert session.feed(b"a") is False
    abort.assert_called_once_with()

@pytest.mark.asyncio
async def test_afeed_awaits_coroutine_update():
    """Test afeed awaits async callbacks and honours False."""
    seen = []

    async def on_update(chunk):
        await asyncio.sleep(0)
        seen.append(chunk)
        return False

    session = StreamSession(on_update=on_update)
    assert await session.afeed(b"a") is False
    assert seen == [b"a"]
    assert session.state is SessionState.CANCELLING

@pytest.mark.asyncio
async def test_afeed_isolates_coroutine_errors(caplog):
    """Test a raising async callback is logged and the stream continues."""
    async def on_update(chunk):
        raise ValueError("boom")

    session = StreamSession(on_update=on_update)
    with caplog.at_level(logging.ERROR, logger="ipfsio.streaming"):
        assert await session.afeed(b"a") is True
    assert "update callback failed" in caplog.text

@pytest.mark.asyncio
async def test_acomplete_awaits_and_fires_once():
    """Test acomplete awaits an async on_complete exactly once."""
    completions = []

    async def on_complete(data):
        completions.append(data)

    session = StreamSession(on_complete=on_complete)
    await session.afeed(b"xy")
    first = await session.acomplete()
    second = await session.acomplete()
    session.complete()

    assert completions == [b"xy"]
    assert first is second
