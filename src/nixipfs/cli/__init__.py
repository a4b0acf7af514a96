"""nixipfs command-line interface."""

from importlib.metadata import version

import click

_PACKAGE_NAME = "nixipfs"


def _get_version() -> str:
    """Return the installed package version string."""
    return version(_PACKAGE_NAME)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s", package_name=_PACKAGE_NAME)
def cli() -> None:
    """Mirror NixOS releases and channels into IPFS."""


@cli.command(hidden=True)
def help() -> None:
    """Show usage information."""
    click.echo('Use "nixipfs --help" for usage information.')
    click.echo('Use "nixipfs <command> --help" for help on a specific command.')


@cli.command("version")
def version_cmd() -> None:
    """Print the version number."""
    click.echo(_get_version())


# Register subcommands (must be after cli is defined)
from . import publish as _publish  # noqa: E402, F401
from . import status as _status  # noqa: E402, F401
