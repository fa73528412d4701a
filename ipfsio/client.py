import logging
import os
from typing import Any, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode

from dotenv import load_dotenv

load_dotenv()

from .data_types import StreamResult
from .streaming import CancelToken, CompletionCallback, UpdateCallback
from .transport.base import Transport
from .transport.http import HTTPTransport

logger = logging.getLogger("ipfsio.client")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5001
DEFAULT_SCHEME = "http"
DEFAULT_API_PATH = "/api/v0"

class Client:
    """
    Connection settings for one daemon plus pass-throughs to its transport.
    Arguments win over IPFS_API_* environment variables (a .env file is honoured).
    """
    def __init__(self,
                 host: Optional[str] = None,
                 port: Optional[int] = None,
                 scheme: Optional[str] = None,
                 api_path: Optional[str] = None,
                 timeout: Optional[float] = None,
                 transport_factory=None,
                 debug: bool = False):

        self.host = host or os.getenv("IPFS_API_HOST") or DEFAULT_HOST
        self.port = int(port or os.getenv("IPFS_API_PORT") or DEFAULT_PORT)
        self.scheme = scheme or os.getenv("IPFS_API_SCHEME") or DEFAULT_SCHEME
        self.api_path = "/" + (api_path or os.getenv("IPFS_API_PATH") or DEFAULT_API_PATH).strip("/")
        env_timeout = os.getenv("IPFS_API_TIMEOUT")
        self.timeout = timeout if timeout is not None else (float(env_timeout) if env_timeout else None)
        self.transport_factory = transport_factory or HTTPTransport
        self.transport: Transport = self.transport_factory(timeout=self.timeout)

        if debug:
            logging.basicConfig(
                level=logging.DEBUG,
                format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            logging.getLogger("ipfsio").setLevel(logging.DEBUG)

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}{self.api_path}"

    def url(self, command: str, **params: Any) -> str:
        """
        Join `command` (e.g. "add" or "object/get") onto the API base URL.
        List values become repeated query parameters; None values are dropped.
        """
        query: List[Tuple[str, Any]] = []
        for key, value in params.items():
            if value is None:
                continue
            values = value if isinstance(value, (list, tuple)) else [value]
            for v in values:
                if isinstance(v, bool):
                    v = "true" if v else "false"
                query.append((key, v))
        url = f"{self.base_url}/{command.strip('/')}"
        if query:
            url += "?" + urlencode(query)
        return url

    def fetch(self, command: str, **params: Any) -> bytes:
        return self.transport.fetch_once(self.url(command, **params))

    async def fetch_async(self, command: str, **params: Any) -> bytes:
        return await self.transport.fetch_once_async(self.url(command, **params))

    def stream(self,
               command: str,
               on_update: Optional[UpdateCallback] = None,
               on_complete: Optional[CompletionCallback] = None,
               cancel_token: Optional[CancelToken] = None,
               **params: Any) -> StreamResult:
        return self.transport.fetch_streamed(
            self.url(command, **params), on_update, on_complete, cancel_token=cancel_token
        )

    async def stream_async(self,
                           command: str,
                           on_update: Optional[UpdateCallback] = None,
                           on_complete: Optional[CompletionCallback] = None,
                           cancel_token: Optional[CancelToken] = None,
                           **params: Any) -> StreamResult:
        return await self.transport.fetch_streamed_async(
            self.url(command, **params), on_update, on_complete, cancel_token=cancel_token
        )

    def send(self, command: str, content: Union[bytes, str], **params: Any) -> bytes:
        if isinstance(content, str):
            content = content.encode("utf-8")
        return self.transport.send_raw(self.url(command, **params), content)

    async def send_async(self, command: str, content: Union[bytes, str], **params: Any) -> bytes:
        if isinstance(content, str):
            content = content.encode("utf-8")
        return await self.transport.send_raw_async(self.url(command, **params), content)

    def send_paths(self, command: str, paths: Sequence[str], **params: Any) -> bytes:
        return self.transport.send_paths(self.url(command, **params), paths)

    async def send_paths_async(self, command: str, paths: Sequence[str], **params: Any) -> bytes:
        return await self.transport.send_paths_async(self.url(command, **params), paths)

    def close(self):
        self.transport.close()

    async def aclose(self):
        await self.transport.aclose()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()
