"""
Per-request accumulation of a streamed response.

A StreamSession is driven by exactly one in-flight request. Chunks are fed in
arrival order; the caller's update callback sees each one until cancellation
is requested (by the callback returning False or by a CancelToken). The
completion callback fires exactly once, with everything accumulated, when
the session is completed, whatever ended the transfer.

`feed`/`complete` serve the blocking transport; `afeed`/`acomplete` also
accept `async def` callbacks and await them.
"""
import inspect
import logging
import threading
import uuid
from enum import Enum
from typing import Any, Callable, List, Optional

from .data_types import StreamResult

logger = logging.getLogger("ipfsio.streaming")

UpdateCallback = Callable[[bytes], Any]
CompletionCallback = Callable[[bytes], Any]

class CancelToken:
    """
    Cooperative cancellation flag, safe to set from another thread.

    Transports register abort callbacks while a request is in flight so that
    cancelling takes effect even when no further data arrives.
    """
    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], Any]] = []

    def cancel(self):
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancel callback failed")

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def add_callback(self, callback: Callable[[], Any]) -> Callable[[], None]:
        """
        Run `callback` on cancellation (at once if already cancelled).
        Returns a function that unregisters it.
        """
        with self._lock:
            already = self._event.is_set()
            if not already:
                self._callbacks.append(callback)
        if already:
            callback()

        def remove():
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)
        return remove

class SessionState(str, Enum):
    ACTIVE = "active"
    CANCELLING = "cancelling"
    TERMINATED = "terminated"

class StreamSession:
    def __init__(
        self,
        on_update: Optional[UpdateCallback] = None,
        on_complete: Optional[CompletionCallback] = None,
        cancel_token: Optional[CancelToken] = None,
        request_id: Optional[str] = None,
    ):
        self.request_id = request_id or uuid.uuid4().hex
        self.on_update = on_update
        self.on_complete = on_complete
        self.cancel_token = cancel_token or CancelToken()
        self.state = SessionState.ACTIVE
        self.chunks = 0
        self._buffer = bytearray()
        self._result: Optional[StreamResult] = None

    @property
    def active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def cancelled(self) -> bool:
        return self.state is SessionState.CANCELLING or (
            self._result is not None and self._result.cancelled
        )

    @property
    def data(self) -> bytes:
        return bytes(self._buffer)

    def cancel(self):
        """Request cancellation. Later chunks are buffered but not forwarded."""
        if self.state is SessionState.ACTIVE:
            logger.info(f"Stream[{self.request_id}]: cancellation requested after {len(self._buffer)} bytes")
            self.state = SessionState.CANCELLING
            self.cancel_token.cancel()

    def _accept(self, chunk: bytes) -> bool:
        """Buffer `chunk`; True if it should be forwarded to on_update."""
        if self.state is SessionState.TERMINATED:
            logger.warning(f"Stream[{self.request_id}]: dropped {len(chunk)} bytes after completion")
            return False

        self._buffer += chunk
        if self.state is SessionState.ACTIVE and self.cancel_token.cancelled:
            self.cancel()
        if self.state is not SessionState.ACTIVE:
            return False
        self.chunks += 1
        return True

    def _settle(self, keep_going: Any) -> bool:
        if keep_going is False or self.cancel_token.cancelled:
            self.cancel()
        return self.state is SessionState.ACTIVE

    def feed(self, chunk: bytes) -> bool:
        """
        Accept one received chunk.
        Returns True while the transport should keep reading, False once
        cancellation has been requested (the transport should abort).
        """
        if not self._accept(chunk):
            return False
        try:
            keep_going = self.on_update(chunk) if self.on_update else True
        except Exception:
            logger.exception(f"Stream[{self.request_id}]: update callback failed")
            keep_going = True
        return self._settle(keep_going)

    async def afeed(self, chunk: bytes) -> bool:
        """feed() for the asyncio transport; awaits coroutine callbacks."""
        if not self._accept(chunk):
            return False
        try:
            keep_going = self.on_update(chunk) if self.on_update else True
            if inspect.isawaitable(keep_going):
                keep_going = await keep_going
        except Exception:
            logger.exception(f"Stream[{self.request_id}]: update callback failed")
            keep_going = True
        return self._settle(keep_going)

    def _terminate(self) -> StreamResult:
        was_cancelled = self.state is SessionState.CANCELLING
        self.state = SessionState.TERMINATED
        self._result = StreamResult(
            request_id=self.request_id,
            data=bytes(self._buffer),
            cancelled=was_cancelled,
            chunks=self.chunks,
        )
        logger.debug(f"Stream[{self.request_id}]: completed bytes={len(self._result.data)} cancelled={was_cancelled}")
        return self._result

    def complete(self) -> StreamResult:
        """
        Terminate the session and fire the completion callback.
        Safe to call more than once; only the first call reaches the callback.
        """
        if self._result is not None:
            return self._result
        result = self._terminate()
        if self.on_complete:
            try:
                self.on_complete(result.data)
            except Exception:
                logger.exception(f"Stream[{self.request_id}]: completion callback failed")
        return result

    async def acomplete(self) -> StreamResult:
        """complete() for the asyncio transport; awaits a coroutine callback."""
        if self._result is not None:
            return self._result
        result = self._terminate()
        if self.on_complete:
            try:
                outcome = self.on_complete(result.data)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception(f"Stream[{self.request_id}]: completion callback failed")
        return result

def reject_coroutine_callbacks(*callbacks: Optional[Callable[..., Any]]):
    """Blocking streams cannot await callbacks; refuse them up front."""
    for callback in callbacks:
        if callback is not None and inspect.iscoroutinefunction(callback):
            raise TypeError(
                f"{getattr(callback, '__name__', callback)!s} is a coroutine function; "
                "use fetch_streamed_async for async callbacks"
            )
