"""
Handles the 'check' command: staleness report plus optional traffic query.

Servers are polled one at a time; each server's report is printed before
the next one is fetched. The traffic query runs once, after all servers,
over the repositories they reported.
"""

import logging
import time
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple

import click
from rich.console import Console

from ..cli_utils import standard_command, add_common_options
from ..config import load_config, configure_logging
from ..domain.status import RepoInventory
from ..exit_codes import FetchError, PartialSuccessError
from ..infra.search_client import SearchClient
from ..infra.tunasync_client import TunasyncClient
from ..render import render_server_report, render_search_banner, render_traffic_report
from ..staleness import find_stale_repos
from ..traffic import query_traffic
from ..windows import TimeWindow

logger = logging.getLogger(__name__)


def resolve_window(pattern: Optional[str], year: Optional[int], month: Optional[int],
                   recent_days: Optional[int], default_recent_days: int) -> TimeWindow:
    """
    Pick the query window from the mutually exclusive CLI options.

    Raises:
        click.UsageError: options are mixed or year/month is incomplete
    """
    chosen = [
        name for name, given in (
            ('--pattern', pattern is not None),
            ('--year/--month', year is not None or month is not None),
            ('--recent-days', recent_days is not None),
        ) if given
    ]
    if len(chosen) > 1:
        raise click.UsageError(f"{' and '.join(chosen)} are mutually exclusive")

    if (year is None) != (month is None):
        raise click.UsageError("--year and --month must be given together")

    try:
        if pattern is not None:
            return TimeWindow.from_pattern(pattern)
        if year is not None:
            return TimeWindow.from_month(year, month)
        return TimeWindow.from_recent_days(recent_days or default_recent_days)
    except ValueError as e:
        raise click.UsageError(str(e)) from e


def monitor_servers(
    client: TunasyncClient,
    servers: Sequence[str],
    expire_days: int,
    failed_only: bool = False,
    keep_going: bool = False,
    clock: Callable[[], float] = time.time,
    out: Optional[Console] = None,
) -> Tuple[RepoInventory, List[str]]:
    """
    Poll each server in turn and print its staleness report.

    Returns:
        The inventory of every repository seen, and the servers skipped
        because their fetch failed (only with keep_going)

    Raises:
        FetchError: a fetch failed and keep_going is off
    """
    inventory = RepoInventory()
    skipped = []

    for server in servers:
        try:
            records = client.get_status(server)
        except FetchError as e:
            if not keep_going:
                raise
            logger.error(f"Skipping {server}: {e}")
            skipped.append(server)
            continue

        inventory.add_all(records)
        stale = find_stale_repos(records, expire_days, int(clock()), failed_only=failed_only)
        render_server_report(server, stale, out=out)

    return inventory, skipped


def report_traffic(
    client: SearchClient,
    inventory: RepoInventory,
    window: TimeWindow,
    index_prefix: str,
    field_name: str,
    bucket_size: Optional[int] = None,
    today: Optional[date] = None,
    out: Optional[Console] = None,
) -> None:
    """Query access-log traffic for the inventory and print the result."""
    if not len(inventory):
        logger.warning("No repositories were reported; skipping traffic query")
        return

    if today is None:
        today = date.today()

    render_search_banner(client.url, out=out)
    if bucket_size is not None and bucket_size < len(inventory):
        logger.warning(
            f"Bucket size {bucket_size} is smaller than the {len(inventory)} candidates; "
            "repositories beyond the cap are listed as unused"
        )

    report = query_traffic(
        client, inventory, window,
        index_prefix=index_prefix,
        field_name=field_name,
        bucket_size=bucket_size,
        today=today,
    )
    render_traffic_report(report, window.describe(today), out=out)


@click.command(name='check')
@click.option('-e', '--expire-days', type=click.IntRange(min=0), default=None,
              help='Days since the last successful sync before a mirror is stale (default: 7)')
@click.option('-E', '--elasticsearch', 'elasticsearch_url', default=None,
              help='Elasticsearch URL (default: http://localhost:9200)')
@click.option('-p', '--pattern', default=None,
              help='Index date pattern appended to the prefix, e.g. 2020.01.*')
@click.option('-y', '--year', type=click.IntRange(1, 9999), default=None, help='Query every day of this year/month')
@click.option('-m', '--month', type=click.IntRange(1, 12), default=None, help='Month for --year')
@click.option('-r', '--recent-days', type=click.IntRange(min=1), default=None,
              help='Query the last N days, ending today')
@click.option('-q', '--query', is_flag=True, help='Cross-reference repositories with access logs')
@click.option('--bucket-size', type=click.IntRange(min=1), default=None,
              help='Maximum aggregation buckets (default: one per repository)')
@click.option('--failed-only/--any-status', default=None,
              help='Only flag repositories whose status is "failed"')
@click.option('--keep-going/--abort-on-error', default=None,
              help='Skip servers that cannot be fetched instead of aborting')
@add_common_options('servers', 'config', 'verbose')
@standard_command
def check_handler(expire_days, elasticsearch_url, pattern, year, month, recent_days, query,
                  bucket_size, failed_only, keep_going, servers, config_path, verbose):
    """Report out of sync mirrors and, with --query, unused repositories.

    \b
    For every server prints either
        <server> failed: <repo>, <N> days ago
    for each stale repository, or
        <server> success: no out of sync mirrors

    \b
    The traffic window is one of --pattern, --year/--month or
    --recent-days (default: the last 30 days).

    Examples:

    \b
        tunasync-monitor check
        tunasync-monitor check -e 3 --failed-only
        tunasync-monitor check -q -y 2020 -m 2
        tunasync-monitor check -q -p '2020.01.*' -E http://es:9200
        tunasync-monitor check -q -r 7 -s mirrors.tuna.tsinghua.edu.cn
    """
    config = load_config(config_path)
    configure_logging(config, verbose)
    monitor_config = config['monitor']
    es_config = config['elasticsearch']

    window = None
    if query:
        window = resolve_window(pattern, year, month, recent_days,
                                config['traffic'].get('recent_days', 30))

    if expire_days is None:
        expire_days = monitor_config['expire_days']
    if failed_only is None:
        failed_only = monitor_config.get('failed_only', False)
    if keep_going is None:
        keep_going = monitor_config.get('keep_going', False)
    servers = list(servers) or list(monitor_config['servers'])
    if not servers:
        raise click.UsageError("No servers configured; pass --server or set monitor.servers")

    with TunasyncClient(
        timeout=monitor_config.get('timeout_seconds', 30),
        user_agent=monitor_config.get('user_agent', 'tunasync-monitor'),
        scheme=monitor_config.get('scheme', 'https'),
        status_path=monitor_config.get('status_path', '/static/tunasync.json'),
    ) as client:
        inventory, skipped = monitor_servers(
            client, servers, expire_days,
            failed_only=failed_only,
            keep_going=keep_going,
        )

    if query:
        url = elasticsearch_url or es_config['url']
        with SearchClient(url, timeout=es_config.get('timeout_seconds', 60)) as search:
            report_traffic(
                search, inventory, window,
                index_prefix=es_config.get('index_prefix', 'filebeat-'),
                field_name=es_config.get('field', 'nginx.access.first_level'),
                bucket_size=bucket_size,
            )

    if skipped:
        raise PartialSuccessError(
            f"{len(skipped)} of {len(servers)} servers could not be checked: {', '.join(skipped)}",
            succeeded=len(servers) - len(skipped),
            failed=len(skipped),
        )
