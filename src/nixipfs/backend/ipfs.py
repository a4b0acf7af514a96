"""Backend implementation using the IPFS (Kubo) RPC API."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterator
from typing import Any, BinaryIO
from urllib.parse import quote

import dacite
import requests

from .base import BackendError, PublishResult, StatResult

log = logging.getLogger("nixipfs/backend")

_CHUNK_SIZE = 64 * 1024

# The RPC API uses CamelCase keys (e.g. CumulativeSize).
_DACITE_CONFIG = dacite.Config(
    convert_key=lambda key: "".join(part.capitalize() for part in key.split("_")),
)


def _ipfs_path(content_hash: str) -> str:
    return content_hash if content_hash.startswith("/") else f"/ipfs/{content_hash}"


def _multipart_body(fp: BinaryIO, name: str, boundary: str) -> Iterator[bytes]:
    """Stream fp as a single-file multipart/form-data body."""
    yield (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="file"; filename="{quote(name)}"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
    ).encode()
    while chunk := fp.read(_CHUNK_SIZE):
        yield chunk
    yield f"\r\n--{boundary}--\r\n".encode()


class IPFSBackend:
    """
    Talks to an IPFS node through its HTTP RPC API.

    The api argument is either `host:port` (e.g. `127.0.0.1:5001`) or a
    full base URL (e.g. `http://ipfs:5001`). All the remote tree operations
    act on the node's mutable file system (MFS).

    The underlying `requests.Session` is shared by the upload threads.
    """

    def __init__(self, api: str, *, session: requests.Session | None = None) -> None:
        base = api if api.startswith(("http://", "https://")) else f"http://{api}"
        self.base_url = f"{base.rstrip('/')}/api/v0"
        self.session = session if session is not None else requests.Session()

    def _call(
        self,
        command: str,
        args: list[str],
        *,
        params: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        query: list[tuple[str, str]] = [("arg", arg) for arg in args]
        query.extend((params or {}).items())
        url = f"{self.base_url}/{command}"
        log.debug("POST %s %s", url, query)
        resp = self.session.post(url, params=query, **kwargs)
        if not resp.ok:
            try:
                message = resp.json()["Message"]
            except (ValueError, KeyError, TypeError):
                message = resp.text.strip() or resp.reason
            raise BackendError(f"{command} {' '.join(args)}: {message}")
        return resp

    def add_content(self, fp: BinaryIO, name: str) -> str:
        boundary = uuid.uuid4().hex
        resp = self._call(
            "add",
            [],
            params={"pin": "false", "raw-leaves": "true", "progress": "false"},
            data=_multipart_body(fp, name, boundary),
            headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        )
        # The add command streams one JSON object per line.
        lines = [line for line in resp.text.splitlines() if line.strip()]
        if not lines:
            raise BackendError(f"add {name}: empty response")
        return json.loads(lines[-1])["Hash"]

    def make_directory(self, path: str, *, parents: bool) -> None:
        self._call("files/mkdir", [path], params={"parents": str(parents).lower()})

    def copy_by_hash(self, content_hash: str, dest: str, *, overwrite: bool = False) -> None:
        params = {"force": "true"} if overwrite else None
        self._call("files/cp", [_ipfs_path(content_hash), dest], params=params)

    def stat_tree(self, path: str) -> StatResult:
        resp = self._call("files/stat", [path])
        return dacite.from_dict(StatResult, resp.json(), config=_DACITE_CONFIG)

    def flush(self, path: str) -> None:
        self._call("files/flush", [path])

    def pin(self, content_hash: str) -> None:
        self._call("pin/add", [_ipfs_path(content_hash)], params={"recursive": "true"})

    def publish_name(self, content_hash: str) -> PublishResult:
        resp = self._call("name/publish", [_ipfs_path(content_hash)])
        return dacite.from_dict(PublishResult, resp.json(), config=_DACITE_CONFIG)
