"""Module containing the Backend protocol and its result types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Protocol


class BackendError(RuntimeError):
    """Error emitted when the backend rejects an operation."""


@dataclass(frozen=True, kw_only=True)
class StatResult:
    """Result of stating a remote tree."""

    hash: str
    size: int = 0
    cumulative_size: int = 0
    blocks: int = 0
    type: str = "directory"


@dataclass(frozen=True, kw_only=True)
class PublishResult:
    """Result of binding the mutable name to a hash."""

    name: str
    value: str


class Backend(Protocol):
    """
    Capabilities the mirror requires from the content-addressed store.

    Methods:
        add_content: store the stream as raw content without pinning it
            and return its hash.
        make_directory: create a remote directory.
        copy_by_hash: place existing content at a remote path.
        stat_tree: return the current hash of a remote path.
        flush: commit buffered changes below a remote path.
        pin: protect content from garbage collection.
        publish_name: bind the mutable name to a hash.
    """

    def add_content(self, fp: BinaryIO, name: str) -> str: ...

    def make_directory(self, path: str, *, parents: bool) -> None: ...

    def copy_by_hash(self, content_hash: str, dest: str, *, overwrite: bool = False) -> None: ...

    def stat_tree(self, path: str) -> StatResult: ...

    def flush(self, path: str) -> None: ...

    def pin(self, content_hash: str) -> None: ...

    def publish_name(self, content_hash: str) -> PublishResult: ...
