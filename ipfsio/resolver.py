"""
Expansion of file and directory references into an ordered list of parts.

Traversal is depth-first pre-order: a directory is emitted before its
children, and children are visited in name order. Filesystem access goes
through a `FileSystem` so the walk can run against an in-memory tree.
"""
import logging
import os
from typing import FrozenSet, List, Optional, Protocol, Sequence

from .data_types import DirectoryPart, FilePart, Part
from .exceptions import PathNotFoundError, SourceUnreadableError
from .utils import root_name, strip_file_scheme

logger = logging.getLogger("ipfsio.resolver")

class FileSystem(Protocol):
    """Read-only filesystem operations the resolver needs."""

    def exists(self, path: str) -> bool:
        ...

    def is_dir(self, path: str) -> bool:
        ...

    def list_dir(self, path: str) -> List[str]:
        """Names of the immediate children of `path`."""
        ...

    def read_bytes(self, path: str) -> bytes:
        ...

    def join(self, parent: str, child: str) -> str:
        ...

    def real_path(self, path: str) -> str:
        """Canonical location of `path` with links resolved."""
        ...

class LocalFileSystem:
    """`FileSystem` backed by the local disk."""

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def list_dir(self, path: str) -> List[str]:
        return sorted(os.listdir(path))

    def read_bytes(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def join(self, parent: str, child: str) -> str:
        return os.path.join(parent, child)

    def real_path(self, path: str) -> str:
        return os.path.realpath(path)

def resolve_paths(paths: Sequence[str], fs: Optional[FileSystem] = None) -> List[Part]:
    """
    Resolve `paths` (plain paths or `file://` URIs) into multipart parts.

    Each reference becomes an upload root named by its last path component;
    nested entries are named `<root>/<child>/...`. The whole batch fails with
    PathNotFoundError if any reference is missing, and with
    SourceUnreadableError if a file cannot be read or a directory links
    back to one of its ancestors.
    """
    if isinstance(paths, str):
        paths = [paths]
    fs = fs or LocalFileSystem()
    parts: List[Part] = []
    for ref in paths:
        path = strip_file_scheme(ref)
        _walk(fs, path, root_name(path), parts, frozenset())
    logger.debug(f"Resolved {len(paths)} reference(s) into {len(parts)} part(s)")
    return parts

def _walk(fs: FileSystem, path: str, name: str, parts: List[Part], ancestors: FrozenSet[str]):
    if not fs.exists(path):
        raise PathNotFoundError(f"File not found at given path: {path}")

    if fs.is_dir(path):
        # A directory linking back to one of its own ancestors never bottoms out.
        real = fs.real_path(path)
        if real in ancestors:
            raise SourceUnreadableError(f"Directory cycle at {path} (links back to {real})")
        parts.append(DirectoryPart(name=name))
        try:
            children = fs.list_dir(path)
        except OSError as e:
            raise SourceUnreadableError(f"Cannot list directory {path}: {e}") from e
        for child in children:
            _walk(fs, fs.join(path, child), f"{name}/{child}", parts, ancestors | {real})
        return

    try:
        content = fs.read_bytes(path)
    except OSError as e:
        raise SourceUnreadableError(f"Cannot read file {path}: {e}") from e
    parts.append(FilePart(name=name, content=content))
