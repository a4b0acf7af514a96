"""
Persistent cache mapping file names to IPFS content hashes.

File format (one record per line, `:` delimited):

    nixos-21.05-x86_64.iso:QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG
    0a1b2c3d4e5f.nar.xz:bafkreigh2akiscaildcqabsyg3dfr6chu3fgpregiymsck7e7aqa4s52zy

The cache is keyed by bare file name, not by path. Two different files
sharing a name in different directories collide. Only extensions whose
content never changes under the same name (ISO images, OVA appliances,
NAR archives, narinfo files) are ever written here.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterator
from pathlib import Path

from .fsutil import atomic_write_text

log = logging.getLogger("nixipfs/hashcache")

_DELIMITER = ":"


class HashCache:
    """
    In-memory view of the hash cache file.

    Load it once with `HashCache.load()`, mutate it with `set()` and write
    it back once with `persist()`.
    """

    def __init__(self, path: Path, entries: dict[str, str] | None = None) -> None:
        self.path = path
        self._entries: dict[str, str] = dict(entries or {})

    @classmethod
    def load(cls, path: Path) -> HashCache:
        """Load the cache from path, or return an empty cache if it does not exist."""
        if not path.exists():
            log.info("hash cache %s does not exist; starting empty", path)
            return cls(path)

        entries: dict[str, str] = {}
        with open(path, newline="") as filep:
            for lineno, record in enumerate(csv.reader(filep, delimiter=_DELIMITER), start=1):
                if not record:
                    continue
                if len(record) != 2:
                    raise ValueError(f"{path}:{lineno}: expected 2 fields, got {len(record)}")
                entries[record[0]] = record[1]

        log.info("loaded %d entries from hash cache %s", len(entries), path)
        return cls(path, entries)

    def get(self, filename: str) -> str | None:
        return self._entries.get(filename)

    def set(self, filename: str, content_hash: str) -> None:
        self._entries[filename] = content_hash

    def __contains__(self, filename: object) -> bool:
        return filename in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def items(self) -> list[tuple[str, str]]:
        return sorted(self._entries.items())

    def persist(self) -> None:
        """Overwrite the cache file with every entry, atomically."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=_DELIMITER, lineterminator="\n")
        for filename, content_hash in self.items():
            writer.writerow([filename, content_hash])
        atomic_write_text(self.path, buffer.getvalue())
        log.info("persisted %d entries to hash cache %s", len(self._entries), self.path)
