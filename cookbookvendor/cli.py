#!/usr/bin/env python3

import click

from cookbookvendor.commands.install import install_handler
from cookbookvendor.commands.config import config_cmd


@click.group()
@click.version_option(package_name="cookbookvendor")
def cli():
    """cookbookvendor - Install cookbooks from GitHub into a git cookbook repo.

    Each cookbook is imported onto its own vendor branch and merged into
    your main line, so local changes and upstream updates are reconciled by
    git instead of being overwritten.
    """
    pass


cli.add_command(install_handler, name='install')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
