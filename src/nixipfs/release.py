"""Module synchronizing a single release or channel directory."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path

from .assembler import assemble_binary_cache
from .config import HASHABLE_RELEASE_EXTENSIONS, MARKER_FILENAME, VALID_RELEASE_PATHS
from .fsutil import atomic_write_text
from .uploader import Uploader

log = logging.getLogger("nixipfs/release")


class MarkerError(ValueError):
    """Error emitted when a publish marker is unusable."""


@dataclass(frozen=True, kw_only=True)
class ReleaseResult:
    """
    Outcome of synchronizing a release.

    Attributes:
        local_dir: the local release directory
        remote_dir: the MFS path the release was placed at
        hash: the hash of the remote release tree
        published_before: True when the marker short-circuited the upload
    """

    local_dir: Path
    remote_dir: str
    hash: str
    published_before: bool


def marker_path(local_dir: Path) -> Path:
    """Return the path of the publish marker of a release."""
    return local_dir / MARKER_FILENAME


def read_marker(local_dir: Path) -> str | None:
    """
    Return the hash stored in the release marker, or None if there is no marker.

    Raises:
        MarkerError: if the marker exists but is empty.
    """
    path = marker_path(local_dir)
    try:
        content = path.read_text()
    except FileNotFoundError:
        return None
    content_hash = content.strip()
    if not content_hash:
        raise MarkerError(f"empty publish marker: {path}")
    return content_hash


class ReleaseSynchronizer:
    """Places releases into the remote tree, uploading only unpublished ones."""

    def __init__(self, uploader: Uploader) -> None:
        self.uploader = uploader
        self.backend = uploader.backend

    def sync(self, local_dir: Path, remote_dir: str) -> ReleaseResult:
        """
        Synchronize local_dir into remote_dir.

        A release with a marker is copied by hash with no upload at all.
        Otherwise its files and binary cache are uploaded, and the hash of
        the resulting tree is written to the marker.
        """
        content_hash = read_marker(local_dir)
        if content_hash is not None:
            log.info("syncing %s... published as %s; copying", local_dir, content_hash)
            self.backend.make_directory(posixpath.dirname(remote_dir), parents=True)
            self.backend.copy_by_hash(content_hash, remote_dir, overwrite=False)
            self.backend.flush(remote_dir)
            return ReleaseResult(
                local_dir=local_dir,
                remote_dir=remote_dir,
                hash=content_hash,
                published_before=True,
            )

        log.info("syncing %s... start", local_dir)
        self.backend.make_directory(remote_dir, parents=True)
        self.uploader.upload(
            local_dir,
            remote_dir,
            VALID_RELEASE_PATHS,
            HASHABLE_RELEASE_EXTENSIONS,
        )
        assemble_binary_cache(self.uploader, local_dir, remote_dir)
        self.backend.flush(remote_dir)
        content_hash = self.backend.stat_tree(remote_dir).hash
        atomic_write_text(marker_path(local_dir), content_hash)
        log.info("syncing %s... ok: %s", local_dir, content_hash)
        return ReleaseResult(
            local_dir=local_dir,
            remote_dir=remote_dir,
            hash=content_hash,
            published_before=False,
        )
