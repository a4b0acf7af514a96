"""Publish command."""

import time

import click
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TransferSpeedColumn,
)

from ..backend import IPFSBackend
from ..publisher import Publisher
from ..scripting import nixipfs_exception, nixipfs_logging
from . import cli
from .options import dir_option, load_config


@cli.command()
@dir_option
@click.option("--api", default=None, help="IPFS RPC API address (default: 127.0.0.1:5001)")
@click.option(
    "-j",
    "--jobs",
    default=None,
    type=click.IntRange(min=1),
    help="Number of parallel uploads per directory (default: 8)",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")
def publish(local_dir: str | None, api: str | None, jobs: int | None, verbose: bool) -> None:
    """Upload releases and channels to IPFS, then pin and publish the tree."""
    nixipfs_logging.configure(verbose=verbose)
    config = load_config(local_dir, api=api, jobs=jobs)
    backend = IPFSBackend(config.api)
    interceptor = nixipfs_exception.Interceptor()

    t0 = time.monotonic()
    with (
        Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
        ) as progress,
        interceptor,
    ):
        result = Publisher(backend, config, progress=progress).run()
    elapsed = time.monotonic() - t0

    if interceptor.failed:
        raise SystemExit(interceptor.exitcode())

    fresh = sum(1 for release in result.releases if not release.published_before)
    click.echo(
        f"Synced {len(result.releases)} release(s) and channel(s), "
        f"{fresh} uploaded, in {elapsed:.1f}s."
    )
    click.echo(f"Published {result.value} to /ipns/{result.name}")
