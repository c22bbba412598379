"""Parley CLI — entry point for the console command."""

import click

from parley import __version__


@click.group()
@click.version_option(version=__version__, package_name="parley")
def main() -> None:
    """Parley — cross-platform chat bot pipeline."""


from .console_cmd import console  # noqa: E402

main.add_command(console)
