#!/usr/bin/env python3

import click

from tunasync_monitor.commands.check import check_handler
from tunasync_monitor.commands.status import status_handler


@click.group()
@click.version_option(package_name='tunasync-monitor')
def cli():
    """tunasync-monitor - Watch tunasync mirrors for stale and unused repositories.

    Polls each mirror's /static/tunasync.json, reports repositories whose
    last successful sync is too old, and optionally asks Elasticsearch
    which repositories received no requests.
    """
    pass


cli.add_command(check_handler)
cli.add_command(status_handler)


def main():
    cli()

if __name__ == "__main__":
    main()
