"""Entry point for the dockerdev command line interface."""

from __future__ import annotations

import click

from dockerdev import __version__
from dockerdev.cli.commands.deploy import deploy


@click.group()
@click.version_option(__version__, prog_name="dockerdev")
def main() -> None:
    """dockerdev - run application images as containers on a local Docker engine."""


main.add_command(deploy)


if __name__ == "__main__":
    main()
