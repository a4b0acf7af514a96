"""
Mirror NixOS releases and channels into IPFS.

The local mirror directory looks like:

    output/
      binary_cache/          global binary cache (narinfo files + nar/)
      releases/<family>/<release>/
      channels/<channel>/
      ipfs_hashes            cross-run hash cache

Every run builds a fresh MFS tree `/nixfs_<unix-seconds>`, pins it and
publishes it under the node's IPNS name.
"""

from importlib.metadata import PackageNotFoundError, version

from .backend import Backend, BackendError, IPFSBackend
from .config import Config
from .hashcache import HashCache
from .publisher import Publisher, RunResult
from .release import ReleaseResult, ReleaseSynchronizer
from .uploader import Uploader

try:
    __version__ = version("nixipfs")
except PackageNotFoundError:  # pragma: no cover - running from a source tree
    __version__ = "0.0.0"

__all__ = [
    "Backend",
    "BackendError",
    "Config",
    "HashCache",
    "IPFSBackend",
    "Publisher",
    "ReleaseResult",
    "ReleaseSynchronizer",
    "RunResult",
    "Uploader",
    "__version__",
]
