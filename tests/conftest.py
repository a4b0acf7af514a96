"""Shared pytest fixtures for nixipfs tests."""

from __future__ import annotations

import hashlib
import json
import threading
from collections import Counter
from pathlib import Path

import pytest

from nixipfs.backend import BackendError, PublishResult, StatResult

FAKE_IPNS_NAME = "k51qzi5uqu5dfakeipnsname"


def fake_digest(data: bytes) -> str:
    """Return the hash FakeBackend assigns to the given bytes."""
    return "Qm" + hashlib.sha256(data).hexdigest()[:44]


def _split(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


class FakeBackend:
    """
    In-memory content-addressed backend with an MFS-like tree.

    Directories in the tree are dicts; entries copied by hash are stored
    as hash strings. Stating a directory computes a deterministic hash
    from its entries and registers it as an object so it can be copied
    again, like a real content-addressed store would.
    """

    def __init__(self) -> None:
        self.objects: dict[str, bytes | dict[str, str]] = {}
        self.root: dict = {}
        self.calls: Counter[str] = Counter()
        self.added: list[str] = []
        self.copies: list[tuple[str, str]] = []
        self.pinned: list[str] = []
        self.fail_on: set[str] = set()
        self._lock = threading.Lock()

    def _count(self, op: str) -> None:
        with self._lock:
            self.calls[op] += 1

    def _resolve(self, path: str):
        node = self.root
        for part in _split(path):
            if isinstance(node, str):
                node = self.objects[node]
            if not isinstance(node, dict) or part not in node:
                raise BackendError(f"file does not exist: {path}")
            node = node[part]
        return node

    def _dir_for_write(self, path: str) -> dict:
        node = self._resolve(path)
        if not isinstance(node, dict):
            raise BackendError(f"not a directory: {path}")
        return node

    def _hash_node(self, node) -> str:
        if isinstance(node, str):
            return node
        entries = {name: self._hash_node(child) for name, child in node.items()}
        content_hash = fake_digest(b"dir:" + json.dumps(sorted(entries.items())).encode())
        self.objects[content_hash] = entries
        return content_hash

    # Backend protocol

    def add_content(self, fp, name: str) -> str:
        self._count("add_content")
        data = b""
        while chunk := fp.read(8192):
            data += chunk
        if name in self.fail_on:
            raise BackendError(f"add {name}: injected failure")
        content_hash = fake_digest(data)
        with self._lock:
            self.objects[content_hash] = data
            self.added.append(name)
        return content_hash

    def make_directory(self, path: str, *, parents: bool) -> None:
        self._count("make_directory")
        parts = _split(path)
        node = self.root
        for index, part in enumerate(parts):
            last = index == len(parts) - 1
            child = node.get(part)
            if child is None:
                if not parents and not last:
                    raise BackendError(f"file does not exist: {path}")
                child = node[part] = {}
            elif isinstance(child, str):
                raise BackendError(f"not a directory: {path}")
            elif last and not parents:
                raise BackendError(f"file already exists: {path}")
            node = child

    def copy_by_hash(self, content_hash: str, dest: str, *, overwrite: bool = False) -> None:
        self._count("copy_by_hash")
        content_hash = content_hash.removeprefix("/ipfs/")
        if content_hash not in self.objects:
            raise BackendError(f"unknown content: {content_hash}")
        parts = _split(dest)
        parent = self._dir_for_write("/".join(parts[:-1]))
        if parts[-1] in parent and not overwrite:
            raise BackendError(f"file already exists: {dest}")
        parent[parts[-1]] = content_hash
        self.copies.append((content_hash, dest))

    def stat_tree(self, path: str) -> StatResult:
        self._count("stat_tree")
        node = self._resolve(path)
        content_hash = self._hash_node(node)
        kind = "directory" if isinstance(self.objects[content_hash], dict) else "file"
        return StatResult(hash=content_hash, type=kind)

    def flush(self, path: str) -> None:
        self._count("flush")
        self._resolve(path)

    def pin(self, content_hash: str) -> None:
        self._count("pin")
        if content_hash not in self.objects:
            raise BackendError(f"unknown content: {content_hash}")
        self.pinned.append(content_hash)

    def publish_name(self, content_hash: str) -> PublishResult:
        self._count("publish_name")
        return PublishResult(name=FAKE_IPNS_NAME, value=f"/ipfs/{content_hash}")

    # Test helpers

    def listdir(self, path: str) -> dict[str, str]:
        """Return the entries of a remote directory mapped to their hashes."""
        node = self._resolve(path)
        if isinstance(node, str):
            node = self.objects[node]
        return {name: self._hash_node(child) for name, child in node.items()}


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Return an empty FakeBackend."""
    return FakeBackend()


@pytest.fixture
def write_file():
    """Return a helper creating a file (and its parents) with the given content."""

    def _write(path: Path, content: bytes) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _write
