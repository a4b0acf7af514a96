"""
Content-addressed storage backends.

The mirror only needs a small capability set from the backend, modeled
by the `Backend` protocol. `IPFSBackend` implements it on top of the
IPFS (Kubo) RPC API, where the remote tree lives in MFS.
"""

from .base import Backend, BackendError, PublishResult, StatResult
from .ipfs import IPFSBackend

__all__ = [
    "Backend",
    "BackendError",
    "IPFSBackend",
    "PublishResult",
    "StatResult",
]
