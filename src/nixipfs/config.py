"""Module containing the nixipfs configuration and fixed policy."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

import dacite
import yaml

DEFAULT_API: Final[str] = "127.0.0.1:5001"
DEFAULT_JOBS: Final[int] = 8
DEFAULT_LOCAL_DIR: Final[str] = "output"

CONFIG_FILENAME: Final[str] = "nixipfs.yaml"
HASH_CACHE_FILENAME: Final[str] = "ipfs_hashes"
MARKER_FILENAME: Final[str] = "ipfs_hash"

CHANNELS_DIRNAME: Final[str] = "channels"
RELEASES_DIRNAME: Final[str] = "releases"
BINARY_CACHE_DIRNAME: Final[str] = "binary_cache"
NAR_DIRNAME: Final[str] = "nar"

# Files are selected when their name *contains* one of these strings.
VALID_RELEASE_PATHS: Final[tuple[str, ...]] = (
    "binary-cache-url",
    "git-revision",
    "nixexprs.tar.xz",
    ".ova",
    ".iso",
    "src-url",
    "store-paths.xz",
)
HASHABLE_RELEASE_EXTENSIONS: Final[tuple[str, ...]] = (".iso", ".ova")

NARINFO_PATHS: Final[tuple[str, ...]] = (".narinfo",)
NARINFO_CACHEABLE: Final[tuple[str, ...]] = (".narinfo",)
NAR_PATHS: Final[tuple[str, ...]] = (".nar", "nar-cache-info")
NAR_CACHEABLE: Final[tuple[str, ...]] = (".nar",)


class ConfigError(ValueError):
    """Error emitted when the configuration file is invalid."""


def namespace_for(timestamp: float) -> str:
    """Return the MFS namespace used by a run started at the given time."""
    return f"/nixfs_{int(timestamp)}"


@dataclass(frozen=True, kw_only=True)
class FileConfig:
    """Optional settings read from `<dir>/nixipfs.yaml`."""

    version: int
    api: str | None = None
    jobs: int | None = None


@dataclass(frozen=True, kw_only=True)
class Config:
    """
    Settings for a single run.

    Attributes:
        local_dir: root of the local mirror (contains `releases/` and `channels/`)
        api: address of the IPFS RPC API (`host:port` or a full URL)
        jobs: maximum number of concurrent uploads per directory
    """

    local_dir: Path
    api: str = DEFAULT_API
    jobs: int = DEFAULT_JOBS

    def __post_init__(self):
        if self.jobs < 1:
            raise ConfigError(f"jobs must be a positive integer, got {self.jobs}")

    @property
    def channels_dir(self) -> Path:
        return self.local_dir / CHANNELS_DIRNAME

    @property
    def releases_dir(self) -> Path:
        return self.local_dir / RELEASES_DIRNAME

    @property
    def hash_cache_path(self) -> Path:
        return self.local_dir / HASH_CACHE_FILENAME

    @property
    def lock_path(self) -> Path:
        return self.local_dir / ".nixipfs.lock"


def load_file_config(path: Path) -> FileConfig | None:
    """
    Load the optional YAML configuration file.

    Returns None when the file does not exist.

    Raises:
        ConfigError: if the file is not valid YAML or has the wrong shape.
    """
    try:
        content = path.read_text()
    except FileNotFoundError:
        return None

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must be a mapping.")

    try:
        config = dacite.from_dict(FileConfig, data, config=dacite.Config(strict=True))
    except dacite.DaciteError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    if config.version != 0:
        raise ConfigError(f"Unsupported config file version: {config.version}")

    return config


def resolve_config(
    local_dir: str | Path | None,
    *,
    api: str | None = None,
    jobs: int | None = None,
) -> Config:
    """
    Build the run Config.

    Command line values win over the config file, which wins over defaults.
    """
    root = Path(local_dir) if local_dir is not None else Path(DEFAULT_LOCAL_DIR)
    file_config = load_file_config(root / CONFIG_FILENAME)
    if file_config is not None:
        api = api if api is not None else file_config.api
        jobs = jobs if jobs is not None else file_config.jobs
    return Config(
        local_dir=root,
        api=api if api is not None else DEFAULT_API,
        jobs=jobs if jobs is not None else DEFAULT_JOBS,
    )
