"""Module assembling remote trees out of already-uploaded content."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import TYPE_CHECKING

from .backend import Backend
from .config import (
    BINARY_CACHE_DIRNAME,
    NAR_CACHEABLE,
    NAR_DIRNAME,
    NAR_PATHS,
    NARINFO_CACHEABLE,
    NARINFO_PATHS,
)

if TYPE_CHECKING:
    from .uploader import Uploader

log = logging.getLogger("nixipfs/assembler")


def copy_into(
    backend: Backend,
    hashes: dict[str, str],
    remote_dir: str,
    *,
    overwrite: bool = False,
) -> None:
    """Copy every (filename, hash) entry into remote_dir without re-uploading."""
    for name in sorted(hashes):
        backend.copy_by_hash(hashes[name], posixpath.join(remote_dir, name), overwrite=overwrite)


def assemble_binary_cache(uploader: Uploader, local_dir: Path, remote_dir: str) -> bool:
    """
    Mirror `local_dir/binary_cache` into `remote_dir/binary_cache`.

    The narinfo files are all cached by name. Inside `nar/`, only the NAR
    archives are: `nar-cache-info` keeps its name while its content changes.

    Returns:
        False when local_dir has no binary cache, True otherwise.
    """
    binary_cache_dir = local_dir / BINARY_CACHE_DIRNAME
    if not binary_cache_dir.is_dir():
        log.info("no binary cache in %s; skipping", local_dir)
        return False
    nar_dir = binary_cache_dir / NAR_DIRNAME

    remote_binary_cache_dir = posixpath.join(remote_dir, BINARY_CACHE_DIRNAME)
    remote_nar_dir = posixpath.join(remote_binary_cache_dir, NAR_DIRNAME)

    log.info("assembling binary cache %s... start", binary_cache_dir)
    uploader.backend.make_directory(remote_binary_cache_dir, parents=False)
    uploader.backend.make_directory(remote_nar_dir, parents=False)
    uploader.upload(binary_cache_dir, remote_binary_cache_dir, NARINFO_PATHS, NARINFO_CACHEABLE)
    if nar_dir.is_dir():
        uploader.upload(nar_dir, remote_nar_dir, NAR_PATHS, NAR_CACHEABLE)
    uploader.backend.flush(remote_binary_cache_dir)
    log.info("assembling binary cache %s... ok", binary_cache_dir)
    return True
