"""
multipart/form-data body construction.

A `Multipart` accumulates serialized parts in memory and is finalized exactly
once. After `finish()` the builder is frozen; the payload can be read back but
no further parts may be added and it cannot be finished again.
"""
import logging
import uuid
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from .data_types import DirectoryPart, FilePart, Part
from .exceptions import InvalidTargetError, MultipartFinishedError
from .utils import parse_url

logger = logging.getLogger("ipfsio.multipart")

CRLF = b"\r\n"
FIELD_NAME = "file"
FILE_CONTENT_TYPE = "application/octet-stream"
DIRECTORY_CONTENT_TYPE = "application/x-directory"

def create_boundary() -> str:
    """Return a fresh boundary token (122 random bits from uuid4)."""
    return "-" * 20 + uuid.uuid4().hex

class Multipart:
    """
    One in-progress multipart/form-data message bound for `target`.

    Mutating methods return the same instance, so both
    `mp.add_file_part(b"x")` and `mp = mp.add_file_part(b"x")` work.
    """
    def __init__(self, target: str, encoding: str = "utf-8", boundary: Optional[str] = None):
        self.target: httpx.URL = parse_url(target, InvalidTargetError)
        self.encoding = encoding
        self.boundary = boundary or create_boundary()
        self._body = bytearray()
        self._parts = 0
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def part_count(self) -> int:
        return self._parts

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    @property
    def headers(self) -> Dict[str, str]:
        return {"Content-Type": self.content_type}

    @property
    def body(self) -> bytes:
        """Bytes serialized so far (the full payload once finished)."""
        return bytes(self._body)

    def _ensure_open(self):
        if self._finished:
            raise MultipartFinishedError("Multipart body already finalized")

    def _disposition(self, name: Optional[str]) -> str:
        disposition = f'Content-Disposition: form-data; name="{FIELD_NAME}"'
        if name is not None:
            disposition += f'; filename="{quote(name, safe="/")}"'
        return disposition

    def _append(self, headers, content: bytes):
        head = f"--{self.boundary}\r\n" + "".join(f"{h}\r\n" for h in headers) + "\r\n"
        self._body += head.encode(self.encoding)
        self._body += content
        self._body += CRLF
        self._parts += 1

    def add_file_part(self, content: bytes, name: Optional[str] = None) -> "Multipart":
        """
        Append a file part. Without `name` the part is a generic file field;
        with it, the name is reported as the part's filename.
        """
        self._ensure_open()
        if isinstance(content, str):
            content = content.encode(self.encoding)
        self._append(
            [self._disposition(name), f"Content-Type: {FILE_CONTENT_TYPE}"],
            bytes(content),
        )
        return self

    def add_directory_part(self, name: str) -> "Multipart":
        """Append an empty placeholder part marking directory `name`."""
        self._ensure_open()
        self._append(
            [self._disposition(name), f"Content-Type: {DIRECTORY_CONTENT_TYPE}"],
            b"",
        )
        return self

    def add_part(self, part: Part) -> "Multipart":
        if isinstance(part, DirectoryPart):
            return self.add_directory_part(part.name)
        if isinstance(part, FilePart):
            return self.add_file_part(part.content, name=part.name)
        raise TypeError(f"Unsupported part: {part!r}")

    def finish(self) -> bytes:
        """Append the closing boundary and freeze the body. Returns the payload."""
        self._ensure_open()
        self._body += f"--{self.boundary}--\r\n".encode(self.encoding)
        self._finished = True
        logger.debug(f"Finalized multipart for {self.target} parts={self._parts} bytes={len(self._body)}")
        return bytes(self._body)
