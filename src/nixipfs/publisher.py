"""Module orchestrating a whole mirror run."""

from __future__ import annotations

import logging
import posixpath
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from filelock import FileLock
from rich.progress import Progress

from .assembler import assemble_binary_cache
from .backend import Backend
from .config import CHANNELS_DIRNAME, RELEASES_DIRNAME, Config, namespace_for
from .fsutil import list_dirs
from .hashcache import HashCache
from .release import ReleaseResult, ReleaseSynchronizer, read_marker
from .uploader import Uploader

log = logging.getLogger("nixipfs/publisher")


@dataclass(frozen=True, kw_only=True)
class RunResult:
    """
    Outcome of a mirror run.

    Attributes:
        namespace: the MFS directory holding the merged tree
        hash: the hash of the merged tree (pinned)
        name: the IPNS name the hash was published under
        value: the published value (`/ipfs/<hash>`)
        releases: what happened to each release and channel
    """

    namespace: str
    hash: str
    name: str
    value: str
    releases: list[ReleaseResult] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class ReleaseStatus:
    """Publication state of a release or channel directory."""

    local_dir: Path
    remote_path: str
    hash: str | None


def iter_targets(config: Config) -> Iterator[tuple[Path, str]]:
    """
    Yield every (local directory, remote path relative to the namespace) pair.

    Releases live two levels below `releases/` (family, then release)
    while channels live directly below `channels/`.
    """
    for family in list_dirs(config.releases_dir):
        for release in list_dirs(family):
            yield release, posixpath.join(RELEASES_DIRNAME, family.name, release.name)
    for channel in list_dirs(config.channels_dir):
        yield channel, posixpath.join(CHANNELS_DIRNAME, channel.name)


def collect_status(config: Config) -> list[ReleaseStatus]:
    """Return the publication state of every release and channel."""
    return [
        ReleaseStatus(local_dir=local_dir, remote_path=remote_path, hash=read_marker(local_dir))
        for local_dir, remote_path in iter_targets(config)
    ]


class Publisher:
    """
    Mirrors the local tree into a fresh MFS namespace and publishes it.

    The hash cache is loaded at the start of `run()` and persisted once,
    after the merged tree has been published.
    """

    def __init__(
        self,
        backend: Backend,
        config: Config,
        *,
        progress: Progress | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.backend = backend
        self.config = config
        self.progress = progress
        self.clock = clock

    def run(self) -> RunResult:
        with FileLock(self.config.lock_path):
            return self._run()

    def _run(self) -> RunResult:
        namespace = namespace_for(self.clock())
        hash_cache = HashCache.load(self.config.hash_cache_path)
        uploader = Uploader(
            self.backend,
            hash_cache,
            jobs=self.config.jobs,
            progress=self.progress,
        )
        synchronizer = ReleaseSynchronizer(uploader)

        log.info("publishing %s into %s... start", self.config.local_dir, namespace)
        self.backend.make_directory(posixpath.join(namespace, CHANNELS_DIRNAME), parents=True)
        self.backend.make_directory(posixpath.join(namespace, RELEASES_DIRNAME), parents=True)

        log.info("adding global binary cache")
        assemble_binary_cache(uploader, self.config.local_dir, namespace)

        releases: list[ReleaseResult] = []
        for local_dir, remote_path in iter_targets(self.config):
            log.info("adding %s", remote_path)
            releases.append(synchronizer.sync(local_dir, posixpath.join(namespace, remote_path)))

        log.info("flushing %s", namespace)
        self.backend.flush(namespace)
        content_hash = self.backend.stat_tree(namespace).hash

        log.info("pinning %s", content_hash)
        self.backend.pin(content_hash)

        published = self.backend.publish_name(content_hash)
        log.info("published %s to /ipns/%s", published.value, published.name)

        hash_cache.persist()
        log.info("publishing %s into %s... ok", self.config.local_dir, namespace)
        return RunResult(
            namespace=namespace,
            hash=content_hash,
            name=published.name,
            value=published.value,
            releases=releases,
        )
