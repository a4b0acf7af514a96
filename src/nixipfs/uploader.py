"""Module uploading the files of a local directory in parallel."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from rich.progress import Progress

from .assembler import copy_into
from .backend import Backend
from .config import DEFAULT_JOBS
from .fsutil import list_files
from .hashcache import HashCache

log = logging.getLogger("nixipfs/uploader")


class UploadError(RuntimeError):
    """Error emitted when uploading a file fails."""


class UploadInvariantError(RuntimeError):
    """Error emitted when a selected file ends up without a hash."""


def matches_any(filename: str, patterns: Iterable[str]) -> bool:
    """
    Return whether filename contains any of the given patterns.

    This is a substring match, not a suffix match: `nixexprs.tar.xz`
    selects `nixexprs.tar.xz.tmp` too.
    """
    return any(pattern in filename for pattern in patterns)


class _ProgressReader:
    """Wraps a file object to update a Rich progress bar on each read."""

    def __init__(self, fp, progress: Progress, task_id) -> None:  # noqa: ANN001
        self._fp = fp
        self._progress = progress
        self._task_id = task_id

    def read(self, size: int = -1) -> bytes:
        data = self._fp.read(size)
        if data:
            self._progress.update(self._task_id, advance=len(data))
        return data


class Uploader:
    """
    Uploads the allow-listed files of a directory and copies them into MFS.

    Attributes:
        backend: the content-addressed store
        hash_cache: the cross-run hash cache, only mutated by the thread
            calling `upload()`
        jobs: maximum number of concurrent uploads
        progress: optional progress display
    """

    def __init__(
        self,
        backend: Backend,
        hash_cache: HashCache,
        *,
        jobs: int = DEFAULT_JOBS,
        progress: Progress | None = None,
    ) -> None:
        self.backend = backend
        self.hash_cache = hash_cache
        self.jobs = jobs
        self.progress = progress

    def upload(
        self,
        directory: Path,
        remote_dir: str,
        extensions: Iterable[str],
        cacheable: Iterable[str],
    ) -> dict[str, str]:
        """
        Upload the files of directory selected by extensions into remote_dir.

        Files whose name matches cacheable and that are already in the hash
        cache are not uploaded again. Every other selected file is uploaded
        and, if cacheable, its hash is stored in the hash cache.

        Returns:
            The mapping from every selected file name to its hash.

        Raises:
            UploadError: if any upload fails.
            UploadInvariantError: if a selected file has no hash.
        """
        extensions = tuple(extensions)
        cacheable = tuple(cacheable)
        selected = [name for name in list_files(directory) if matches_any(name, extensions)]
        pending = [
            name
            for name in selected
            if not (matches_any(name, cacheable) and name in self.hash_cache)
        ]
        log.info(
            "uploading %s: %d selected, %d cached",
            directory,
            len(selected),
            len(selected) - len(pending),
        )

        local: dict[str, str] = {}
        for name, content_hash in self._upload_all(directory, pending):
            if matches_any(name, cacheable):
                self.hash_cache.set(name, content_hash)
            else:
                local[name] = content_hash

        resolved: dict[str, str] = {}
        for name in selected:
            content_hash = self.hash_cache.get(name) or local.get(name)
            if not content_hash:
                raise UploadInvariantError(f"no hash for {directory / name}")
            resolved[name] = content_hash

        copy_into(self.backend, resolved, remote_dir)
        return resolved

    def _upload_all(self, directory: Path, names: list[str]) -> list[tuple[str, str]]:
        if not names:
            return []
        results: list[tuple[str, str]] = []
        with ThreadPoolExecutor(max_workers=min(self.jobs, len(names))) as pool:
            futures = {pool.submit(self._upload_one, directory / name): name for name in names}
            for future in as_completed(futures):
                name = futures[future]
                try:
                    results.append((name, future.result()))
                except Exception as exc:
                    for other in futures:
                        other.cancel()
                    raise UploadError(f"cannot upload {directory / name}: {exc}") from exc
        return results

    def _upload_one(self, path: Path) -> str:
        """Upload a single file and return its hash."""
        log.debug("adding %s... start", path)
        if self.progress is None:
            with open(path, "rb") as fp:
                content_hash = self.backend.add_content(fp, path.name)
        else:
            task_id = self.progress.add_task(path.name, total=path.stat().st_size)
            try:
                with open(path, "rb") as fp:
                    reader = _ProgressReader(fp, self.progress, task_id)
                    content_hash = self.backend.add_content(reader, path.name)
            finally:
                self.progress.remove_task(task_id)
        log.debug("adding %s... ok: %s", path, content_hash)
        return content_hash
