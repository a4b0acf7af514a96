"""Options shared by several commands."""

from __future__ import annotations

import click

from ..config import DEFAULT_LOCAL_DIR, Config, ConfigError, resolve_config

dir_option = click.option(
    "-d",
    "--dir",
    "local_dir",
    default=None,
    help=f"Local mirror directory (default: {DEFAULT_LOCAL_DIR})",
)


def load_config(local_dir: str | None, *, api: str | None = None, jobs: int | None = None) -> Config:
    """Resolve the run Config, turning config errors into usage errors."""
    try:
        return resolve_config(local_dir, api=api, jobs=jobs)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
