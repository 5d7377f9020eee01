"""
Rendering functions for tunasync-monitor output.

This module handles all pretty-printing. Core functions return data,
this module makes it human-readable. Colors are cosmetic: with colors
stripped the lines read the same.
"""

import json
from datetime import datetime
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .domain.status import StatusRecord, StalenessResult
from .traffic import TrafficReport

console = Console(highlight=False)


def format_sizes(sizes: Sequence[str]) -> str:
    """Render size strings as a list literal, e.g. ["12GiB", "3GiB"]."""
    return json.dumps(list(sizes), ensure_ascii=False)


def _print(line: str, out: Optional[Console]) -> None:
    (out if out is not None else console).print(line, soft_wrap=True, highlight=False)


def render_server_report(server: str, stale: List[StalenessResult],
                         out: Optional[Console] = None) -> None:
    """
    Print the staleness summary of one server.

    One line per stale repository, or a single success line.
    """
    if not stale:
        _print(f"[blue]{escape(server)}[/blue] [green]success[/green]: no out of sync mirrors", out)
        return

    for result in stale:
        _print(
            f"[blue]{escape(server)}[/blue] [red]failed[/red]: "
            f"{escape(result.name)}, {result.days_ago} days ago",
            out,
        )


def render_search_banner(url: str, out: Optional[Console] = None) -> None:
    _print(f"[blue]elasticsearch[/blue] [green]success[/green]: using [blue]{escape(url)}[/blue]", out)


def render_traffic_report(report: TrafficReport, window_label: str,
                          out: Optional[Console] = None) -> None:
    """Print request counts, then repositories without any traffic."""
    _print(f"[blue]elasticsearch[/blue]: showing {escape(window_label)}", out)

    for item in report.requests:
        _print(
            f"[blue]requests to[/blue] {escape(item.name)}: {item.count} "
            f"size={escape(format_sizes(item.sizes))}",
            out,
        )

    for item in report.unused:
        _print(
            f"[blue]unused repo[/blue]: {escape(item.name)} "
            f"size={escape(format_sizes(item.sizes))}",
            out,
        )


def _format_ts(ts: Optional[int]) -> str:
    if not ts:
        return "never"
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


def render_status_table(server: str, records: List[StatusRecord],
                        out: Optional[Console] = None) -> None:
    """
    Render one server's status manifest as a table.

    Args:
        server: Server the records came from
        records: Records in fetch order (most recently updated first)
    """
    out = out if out is not None else console
    if not records:
        out.print(f"[yellow]{escape(server)}: no repositories reported.[/yellow]")
        return

    table = Table(
        title=server,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Repository", style="cyan")
    table.add_column("Status")
    table.add_column("Last update", style="dim")
    table.add_column("Next schedule", style="dim")
    table.add_column("Size", justify="right")
    table.add_column("Upstream", style="dim")

    status_styles = {
        'success': 'green',
        'failed': 'red',
        'syncing': 'yellow',
    }

    for record in records:
        style = status_styles.get(record.status)
        status_display = escape(record.status)
        if style:
            status_display = f"[{style}]{status_display}[/{style}]"
        if record.is_master:
            status_display += " (master)"

        table.add_row(
            escape(record.name),
            status_display,
            _format_ts(record.last_update_ts),
            _format_ts(record.next_schedule_ts),
            escape(record.size),
            escape(record.upstream),
        )

    out.print(table)
