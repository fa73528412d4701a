import posixpath
from typing import Type
import httpx
from .exceptions import InvalidURLError

FILE_SCHEME = "file://"

def parse_url(url: str, error: Type[InvalidURLError] = InvalidURLError) -> httpx.URL:
    """
    Parse a fully-formed http(s) URL string.
    Raises `error` (a subclass of InvalidURLError) before any network activity.
    """
    if not isinstance(url, str) or not url.strip():
        raise error(f"Invalid URL: {url!r}")
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        raise error(f"Invalid URL {url!r}: {e}") from e

    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise error(f"Invalid URL {url!r}: expected an absolute http(s) URL")
    return parsed

def strip_file_scheme(ref: str) -> str:
    """Turn a `file://` reference into a plain filesystem path."""
    if ref.startswith(FILE_SCHEME):
        return ref[len(FILE_SCHEME):]
    return ref

def root_name(path: str) -> str:
    """
    Name an upload root by its last path component.
    Trailing separators are ignored; the filesystem root keeps its own name.
    """
    trimmed = path.rstrip("/\\")
    if not trimmed:
        return path
    return posixpath.basename(trimmed.replace("\\", "/")) or trimmed
