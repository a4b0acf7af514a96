"""Status command."""

import click
from rich.console import Console

from ..publisher import collect_status
from . import cli
from .options import dir_option, load_config


@cli.command()
@dir_option
def status(local_dir: str | None) -> None:
    """Show which releases and channels are already published.

    Each path is prefixed with a status letter:

    \b
      'P'  published (has a marker; followed by its hash)
      'U'  unpublished (will be uploaded by the next publish)
    """
    config = load_config(local_dir)
    console = Console()
    try:
        entries = collect_status(config)
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    for entry in entries:
        if entry.hash is not None:
            console.print(f"[green]P[/] {entry.remote_path} [dim]{entry.hash}[/]")
        else:
            console.print(f"[yellow]U[/] {entry.remote_path}")
