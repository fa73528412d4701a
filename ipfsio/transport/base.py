from typing import Optional, Protocol, Sequence
from ..data_types import StreamResult
from ..streaming import CancelToken, CompletionCallback, UpdateCallback

class Transport(Protocol):
    """
    Abstract interface for moving bytes to and from the daemon.
    URLs are fully formed; building command paths is the caller's job.
    """

    def fetch_once(self, url: str, timeout: Optional[float] = None, allow_empty: bool = False) -> bytes:
        """GET `url` and return the whole response body."""
        ...

    async def fetch_once_async(self, url: str, timeout: Optional[float] = None, allow_empty: bool = False) -> bytes:
        """Asynchronous fetch_once."""
        ...

    def fetch_streamed(
        self,
        url: str,
        on_update: Optional[UpdateCallback] = None,
        on_complete: Optional[CompletionCallback] = None,
        cancel_token: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> StreamResult:
        """
        GET `url`, delivering each received chunk to `on_update` in order.
        `on_complete` fires exactly once with all accumulated bytes.
        """
        ...

    async def fetch_streamed_async(
        self,
        url: str,
        on_update: Optional[UpdateCallback] = None,
        on_complete: Optional[CompletionCallback] = None,
        cancel_token: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> StreamResult:
        """Asynchronous fetch_streamed."""
        ...

    def send_raw(self, url: str, content: bytes, timeout: Optional[float] = None) -> bytes:
        """POST `content` as a single multipart file part."""
        ...

    async def send_raw_async(self, url: str, content: bytes, timeout: Optional[float] = None) -> bytes:
        """Asynchronous send_raw."""
        ...

    def send_paths(self, url: str, paths: Sequence[str], timeout: Optional[float] = None) -> bytes:
        """POST files and directories (recursively) as multipart parts."""
        ...

    async def send_paths_async(self, url: str, paths: Sequence[str], timeout: Optional[float] = None) -> bytes:
        """Asynchronous send_paths."""
        ...

    def close(self):
        """Release blocking resources."""
        ...

    async def aclose(self):
        """Release all resources, including asyncio ones."""
        ...
