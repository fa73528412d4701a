"""
Testing utilities for code built on ipfsio.
Use these to exercise callers without a running daemon or a real directory tree.
"""
import errno
import posixpath
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union
from .data_types import StreamResult
from .exceptions import EmptyResponseError, InvalidSourceError
from .multipart import Multipart
from .resolver import resolve_paths
from .streaming import (
    CancelToken,
    CompletionCallback,
    StreamSession,
    UpdateCallback,
    reject_coroutine_callbacks,
)
from .transport.base import Transport
from .utils import parse_url

Tree = Dict[str, Union[bytes, str, "Tree"]]

MAX_LINK_HOPS = 40

class MockTransport(Transport):
    """
    A transport that records every request and replays canned results.
    Streams are fed through a real StreamSession, so callback and
    cancellation behaviour matches HTTPTransport.
    """
    def __init__(self, timeout: Optional[float] = None, fs=None, **kwargs: Any):
        self.timeout = timeout
        self.fs = fs
        self.requests: List[Dict[str, Any]] = []
        self._responses: List[Union[bytes, Exception]] = []
        self._streams: List[List[bytes]] = []

    def add_response(self, data: Union[bytes, str]):
        """Queue a body for the next fetch_once / send_* call."""
        self._responses.append(data.encode("utf-8") if isinstance(data, str) else data)

    def add_error(self, error: Exception):
        """Queue an error to be raised by the next fetch_once / send_* call."""
        self._responses.append(error)

    def add_stream(self, chunks: Iterable[bytes]):
        """Queue the chunk sequence for the next fetch_streamed call."""
        self._streams.append(list(chunks))

    def _next_response(self) -> bytes:
        if not self._responses:
            return b""
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def _send(self, multipart: Multipart) -> bytes:
        body = multipart.finish()
        self.requests.append({
            "method": "POST",
            "url": str(multipart.target),
            "content_type": multipart.content_type,
            "body": body,
            "parts": multipart.part_count,
        })
        return self._next_response()

    def fetch_once(self, url: str, timeout: Optional[float] = None, allow_empty: bool = False) -> bytes:
        parse_url(url, InvalidSourceError)
        self.requests.append({"method": "GET", "url": url})
        body = self._next_response()
        if not body and not allow_empty:
            raise EmptyResponseError(f"Empty response from {url}")
        return body

    async def fetch_once_async(self, url: str, timeout: Optional[float] = None, allow_empty: bool = False) -> bytes:
        return self.fetch_once(url, timeout=timeout, allow_empty=allow_empty)

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
        self.requests.append({"method": "GET", "url": url, "stream": True})
        session = StreamSession(on_update, on_complete, cancel_token)
        chunks = self._streams.pop(0) if self._streams else []
        for chunk in chunks:
            if not session.feed(chunk):
                break
        return session.complete()

    async def fetch_streamed_async(
        self,
        url: str,
        on_update: Optional[UpdateCallback] = None,
        on_complete: Optional[CompletionCallback] = None,
        cancel_token: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> StreamResult:
        parse_url(url, InvalidSourceError)
        self.requests.append({"method": "GET", "url": url, "stream": True})
        session = StreamSession(on_update, on_complete, cancel_token)
        chunks = self._streams.pop(0) if self._streams else []
        for chunk in chunks:
            if not await session.afeed(chunk):
                break
        return await session.acomplete()

    def send_raw(self, url: str, content: bytes, timeout: Optional[float] = None) -> bytes:
        return self._send(Multipart(url).add_file_part(content))

    async def send_raw_async(self, url: str, content: bytes, timeout: Optional[float] = None) -> bytes:
        return self.send_raw(url, content, timeout=timeout)

    def send_paths(self, url: str, paths: Sequence[str], timeout: Optional[float] = None) -> bytes:
        multipart = Multipart(url)
        for part in resolve_paths(paths, self.fs):
            multipart.add_part(part)
        return self._send(multipart)

    async def send_paths_async(self, url: str, paths: Sequence[str], timeout: Optional[float] = None) -> bytes:
        return self.send_paths(url, paths, timeout=timeout)

    def close(self):
        pass

    async def aclose(self):
        pass


class InMemoryFileSystem:
    """
    A `FileSystem` over a nested dict: directories are dicts, files are bytes
    (str values are utf-8 encoded). Paths are absolute POSIX paths.

        fs = InMemoryFileSystem({"root": {"a.txt": b"a", "sub": {"b.txt": b"b"}}})
        fs.is_dir("/root/sub")  # True

    `links` maps absolute link paths to absolute targets, like symlinks.
    """
    def __init__(
        self,
        tree: Optional[Tree] = None,
        unreadable: Iterable[str] = (),
        links: Optional[Dict[str, str]] = None,
    ):
        self.tree: Tree = tree or {}
        self.links: Dict[str, str] = dict(links or {})
        self.unreadable: Set[str] = set(unreadable)
        self.reads: List[str] = []

    def real_path(self, path: str) -> str:
        resolved = "/"
        pending = [p for p in path.split("/") if p]
        hops = 0
        while pending:
            candidate = posixpath.join(resolved, pending.pop(0))
            if candidate in self.links:
                hops += 1
                if hops > MAX_LINK_HOPS:
                    raise OSError(errno.ELOOP, "Too many levels of symbolic links", path)
                pending = [p for p in self.links[candidate].split("/") if p] + pending
                resolved = "/"
            else:
                resolved = candidate
        return resolved

    def _lookup(self, path: str):
        node: Any = self.tree
        for name in [p for p in self.real_path(path).split("/") if p]:
            if not isinstance(node, dict) or name not in node:
                return None
            node = node[name]
        return node

    def exists(self, path: str) -> bool:
        return self._lookup(path) is not None

    def is_dir(self, path: str) -> bool:
        return isinstance(self._lookup(path), dict)

    def list_dir(self, path: str) -> List[str]:
        node = self._lookup(path)
        if not isinstance(node, dict):
            raise NotADirectoryError(path)
        names = set(node)
        real = self.real_path(path)
        for link in self.links:
            parent, base = posixpath.split(link)
            if self.real_path(parent) == real:
                names.add(base)
        return sorted(names)

    def read_bytes(self, path: str) -> bytes:
        if path in self.unreadable:
            raise PermissionError(f"Permission denied: {path}")
        node = self._lookup(path)
        if node is None:
            raise FileNotFoundError(path)
        if isinstance(node, dict):
            raise IsADirectoryError(path)
        self.reads.append(path)
        return node.encode("utf-8") if isinstance(node, str) else node

    def join(self, parent: str, child: str) -> str:
        return posixpath.join(parent, child)
