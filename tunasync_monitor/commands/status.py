"""
Handles the 'status' command for displaying mirror status manifests.

- Interactive terminal: one table per server
- Piped/redirected: JSONL, one object per repository, tagged with its server
"""

import sys
import click

from ..cli_utils import standard_command, add_common_options
from ..config import load_config, configure_logging
from ..infra.tunasync_client import TunasyncClient
from ..output import emit
from ..render import render_status_table


@click.command(name='status')
@click.argument('servers', nargs=-1)
@click.option('--table/--no-table', default=None,
              help='Display as formatted table (auto-detected by default)')
@add_common_options('config', 'verbose')
@standard_command
def status_handler(servers, table, config_path, verbose):
    """Show the status manifest of mirror servers.

    SERVERS: Mirror hostnames (default: servers from config)

    \b
    Records are listed most recently updated first.

    Examples:

    \b
        tunasync-monitor status
        tunasync-monitor status mirrors.tuna.tsinghua.edu.cn --table
        tunasync-monitor status | jq 'select(.status == "failed")'
    """
    config = load_config(config_path)
    configure_logging(config, verbose)
    monitor_config = config['monitor']

    if table is None:
        table = sys.stdout.isatty()

    servers = list(servers) or list(monitor_config['servers'])
    if not servers:
        raise click.UsageError("No servers configured; pass SERVERS or set monitor.servers")

    with TunasyncClient(
        timeout=monitor_config.get('timeout_seconds', 30),
        user_agent=monitor_config.get('user_agent', 'tunasync-monitor'),
        scheme=monitor_config.get('scheme', 'https'),
        status_path=monitor_config.get('status_path', '/static/tunasync.json'),
    ) as client:
        for server in servers:
            records = client.get_status(server)
            if table:
                render_status_table(server, records)
            else:
                emit(records, extra={'server': server})
