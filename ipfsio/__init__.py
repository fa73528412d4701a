from .client import Client
from .transport import Transport, HTTPTransport
from .multipart import Multipart, create_boundary
from .resolver import FileSystem, LocalFileSystem, resolve_paths
from .streaming import CancelToken, StreamSession
from .data_types import FilePart, DirectoryPart, Part, StreamResult
from .testing import MockTransport, InMemoryFileSystem
from .exceptions import (
    IpfsIoError, InvalidURLError, InvalidSourceError, InvalidTargetError,
    TransportError, NetworkError, InvalidRequestError, DaemonError,
    EmptyResponseError, PathNotFoundError, SourceUnreadableError,
    MultipartFinishedError
)

__version__ = "0.1.0"

__all__ = [
    "Client",
    "Transport",
    "HTTPTransport",
    "Multipart",
    "create_boundary",
    "FileSystem",
    "LocalFileSystem",
    "resolve_paths",
    "CancelToken",
    "StreamSession",
    "FilePart",
    "DirectoryPart",
    "Part",
    "StreamResult",
    "MockTransport",
    "InMemoryFileSystem",
    "IpfsIoError",
    "InvalidURLError",
    "InvalidSourceError",
    "InvalidTargetError",
    "TransportError",
    "NetworkError",
    "InvalidRequestError",
    "DaemonError",
    "EmptyResponseError",
    "PathNotFoundError",
    "SourceUnreadableError",
    "MultipartFinishedError",
]
