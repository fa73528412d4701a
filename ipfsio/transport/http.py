import asyncio
import contextlib
import logging
import socket
import httpx
from typing import Any, Dict, Optional, Sequence
from .base import Transport
from ..data_types import StreamResult
from ..exceptions import (
    DaemonError,
    EmptyResponseError,
    InvalidRequestError,
    InvalidSourceError,
    IpfsIoError,
    NetworkError,
    TransportError,
)
from ..multipart import Multipart
from ..resolver import FileSystem, resolve_paths
from ..streaming import (
    CancelToken,
    CompletionCallback,
    StreamSession,
    UpdateCallback,
    reject_coroutine_callbacks,
)
from ..utils import parse_url

logger = logging.getLogger("ipfsio.transport")

class HTTPTransport(Transport):
    """
    HTTP transport using httpx.
    GETs fetch raw bytes (buffered or streamed); sends are multipart POSTs.
    """
    def __init__(
        self,
        timeout: Optional[float] = None,
        headers: Dict[str, str] = None,
        client: Optional[httpx.Client] = None,
        aclient: Optional[httpx.AsyncClient] = None,
        fs: Optional[FileSystem] = None,
    ):
        self.timeout = timeout
        self.headers = headers
        self.fs = fs
        # Without an explicit timeout httpx keeps its own default.
        options: Dict[str, Any] = {"headers": headers}
        if timeout is not None:
            options["timeout"] = timeout
        self._options = options
        self.client = client or httpx.Client(**options)
        self._aclient = aclient

    @property
    def aclient(self) -> httpx.AsyncClient:
        """The asyncio client, created on first use so sync-only callers never open one."""
        if self._aclient is None:
            self._aclient = httpx.AsyncClient(**self._options)
        return self._aclient

    def _request_options(self, timeout: Optional[float]) -> Dict[str, Any]:
        if timeout is None:
            return {}
        return {"timeout": timeout}

    def _handle_error(self, e: Exception, context: str = ""):
        """Map httpx errors to ipfsio exceptions."""
        if isinstance(e, IpfsIoError):
            raise e

        if isinstance(e, httpx.HTTPStatusError):
            status = e.response.status_code
            try:
                error_body = e.response.text
            except httpx.ResponseNotRead:
                error_body = "<Could not read error body>"

            error_msg = f"{context}: {error_body}"
            logger.error(f"HTTP Error {status}: {error_msg}")

            if 400 <= status < 500:
                raise InvalidRequestError(error_msg) from e
            elif status >= 500:
                raise DaemonError(error_msg) from e
            else:
                raise TransportError(f"HTTP {status}: {error_msg}") from e

        elif isinstance(e, httpx.RequestError):
            logger.error(f"Network Error: {e}")
            raise NetworkError(f"{context}: network error: {e}") from e
        else:
            logger.error(f"Unexpected Error: {e}")
            raise TransportError(f"{context}: unexpected error: {e}") from e

    def _body(self, response: httpx.Response, allow_empty: bool) -> bytes:
        content = response.content
        if not content and not allow_empty:
            raise EmptyResponseError(f"Empty response from {response.request.url}")
        return content

    def fetch_once(self, url: str, timeout: Optional[float] = None, allow_empty: bool = False) -> bytes:
        parse_url(url, InvalidSourceError)
        logger.debug(f"GET {url}")
        try:
            response = self.client.get(url, **self._request_options(timeout))
            response.raise_for_status()
        except Exception as e:
            self._handle_error(e, "Fetch failed")
        return self._body(response, allow_empty)

    async def fetch_once_async(self, url: str, timeout: Optional[float] = None, allow_empty: bool = False) -> bytes:
        parse_url(url, InvalidSourceError)
        logger.debug(f"ASYNC GET {url}")
        try:
            response = await self.aclient.get(url, **self._request_options(timeout))
            response.raise_for_status()
        except Exception as e:
            self._handle_error(e, "Async fetch failed")
        return self._body(response, allow_empty)

    def _abort(self, session: StreamSession, response: httpx.Response):
        """Tear down an in-flight streamed response; may run on another thread."""
        session.cancel()
        network_stream = response.extensions.get("network_stream")
        sock = network_stream.get_extra_info("socket") if network_stream is not None else None
        if sock is not None:
            # shutdown() wakes a read blocked in another thread, close() may not.
            with contextlib.suppress(OSError):
                sock.shutdown(socket.SHUT_RDWR)
        else:
            response.close()

    def fetch_streamed(
        self,
        url: str,
        on_update: Optional[UpdateCallback] = None,
        on_complete: Optional[CompletionCallback] = None,
        cancel_token: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> StreamResult:
        parse_url(url, InvalidSourceError)
        reject_coroutine_callbacks(on_update, on_complete)
        session = StreamSession(on_update, on_complete, cancel_token)
        if session.cancel_token.cancelled:
            session.cancel()
            return session.complete()

        logger.debug(f"STREAM GET {url} id={session.request_id}")
        error = None
        try:
            with self.client.stream("GET", url, **self._request_options(timeout)) as response:
                if response.is_error:
                    response.read()
                response.raise_for_status()
                remove = session.cancel_token.add_callback(lambda: self._abort(session, response))
                try:
                    for chunk in response.iter_bytes():
                        if not session.feed(chunk):
                            break
                finally:
                    remove()
        except Exception as e:
            if session.cancelled:
                logger.debug(f"Stream[{session.request_id}]: read ended after cancellation: {e!r}")
            else:
                error = e
        finally:
            result = session.complete()
        if error is not None:
            self._handle_error(error, "Stream failed")
        return result

    async def _read_stream_async(self, session: StreamSession, response: httpx.Response):
        """Read until the body ends or the session's token fires, whichever is first."""
        loop = asyncio.get_running_loop()
        aborted = asyncio.Event()
        remove = session.cancel_token.add_callback(lambda: loop.call_soon_threadsafe(aborted.set))

        async def read():
            async for chunk in response.aiter_bytes():
                if not await session.afeed(chunk):
                    break

        reader = asyncio.ensure_future(read())
        waiter = asyncio.ensure_future(aborted.wait())
        try:
            await asyncio.wait({reader, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            remove()
            waiter.cancel()
            if not reader.done():
                # The daemon went quiet after cancellation: drop the pending read.
                session.cancel()
                reader.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await reader
        if not reader.cancelled():
            reader.result()

    async def fetch_streamed_async(
        self,
        url: str,
        on_update: Optional[UpdateCallback] = None,
        on_complete: Optional[CompletionCallback] = None,
        cancel_token: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> StreamResult:
        parse_url(url, InvalidSourceError)
        session = StreamSession(on_update, on_complete, cancel_token)
        if session.cancel_token.cancelled:
            session.cancel()
            return await session.acomplete()

        logger.debug(f"ASYNC STREAM GET {url} id={session.request_id}")
        error = None
        try:
            async with self.aclient.stream("GET", url, **self._request_options(timeout)) as response:
                if response.is_error:
                    await response.aread()
                response.raise_for_status()
                await self._read_stream_async(session, response)
        except Exception as e:
            if session.cancelled:
                logger.debug(f"Stream[{session.request_id}]: read ended after cancellation: {e!r}")
            else:
                error = e
        finally:
            result = await session.acomplete()
        if error is not None:
            self._handle_error(error, "Async stream failed")
        return result

    def finish_multipart(self, multipart: Multipart, timeout: Optional[float] = None) -> bytes:
        """Finalize `multipart` and POST it. The builder cannot be reused afterwards."""
        payload = multipart.finish()
        logger.debug(f"POST {multipart.target} parts={multipart.part_count} bytes={len(payload)}")
        try:
            response = self.client.post(
                multipart.target,
                content=payload,
                headers=multipart.headers,
                **self._request_options(timeout)
            )
            response.raise_for_status()
        except Exception as e:
            self._handle_error(e, "Send failed")
        return self._body(response, allow_empty=True)

    async def finish_multipart_async(self, multipart: Multipart, timeout: Optional[float] = None) -> bytes:
        payload = multipart.finish()
        logger.debug(f"ASYNC POST {multipart.target} parts={multipart.part_count} bytes={len(payload)}")
        try:
            response = await self.aclient.post(
                multipart.target,
                content=payload,
                headers=multipart.headers,
                **self._request_options(timeout)
            )
            response.raise_for_status()
        except Exception as e:
            self._handle_error(e, "Async send failed")
        return self._body(response, allow_empty=True)

    def _raw_multipart(self, url: str, content: bytes) -> Multipart:
        return Multipart(url).add_file_part(content)

    def _paths_multipart(self, url: str, paths: Sequence[str]) -> Multipart:
        multipart = Multipart(url)
        # Resolution completes (or fails) before anything is sent.
        for part in resolve_paths(paths, self.fs):
            multipart.add_part(part)
        return multipart

    def send_raw(self, url: str, content: bytes, timeout: Optional[float] = None) -> bytes:
        return self.finish_multipart(self._raw_multipart(url, content), timeout=timeout)

    async def send_raw_async(self, url: str, content: bytes, timeout: Optional[float] = None) -> bytes:
        return await self.finish_multipart_async(self._raw_multipart(url, content), timeout=timeout)

    def send_paths(self, url: str, paths: Sequence[str], timeout: Optional[float] = None) -> bytes:
        return self.finish_multipart(self._paths_multipart(url, paths), timeout=timeout)

    async def send_paths_async(self, url: str, paths: Sequence[str], timeout: Optional[float] = None) -> bytes:
        return await self.finish_multipart_async(self._paths_multipart(url, paths), timeout=timeout)

    def close(self):
        """
        Close the sync client. An async client can only be closed from a
        running loop: async users should call aclose() or use `async with`.
        """
        self.client.close()
        if self._aclient is not None and not self._aclient.is_closed:
            logger.warning("Async client left open; use aclose() or 'async with' to release it")

    async def aclose(self):
        """Close both clients."""
        self.client.close()
        if self._aclient is not None:
            await self._aclient.aclose()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()
