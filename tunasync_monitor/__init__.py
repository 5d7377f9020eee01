"""
tunasync-monitor - Staleness and traffic monitor for tunasync mirrors.

Quick Start:
    from tunasync_monitor import TunasyncClient, find_stale_repos
    import time

    with TunasyncClient() as client:
        records = client.get_status("mirrors.tuna.tsinghua.edu.cn")

    for stale in find_stale_repos(records, expire_days=7, now=int(time.time())):
        print(stale.name, stale.days_ago)

Traffic:
    from tunasync_monitor import RepoInventory, SearchClient, TimeWindow, query_traffic

    inventory = RepoInventory()
    inventory.add_all(records)
    with SearchClient("http://localhost:9200") as search:
        report = query_traffic(search, inventory, TimeWindow.from_recent_days(7))
    for item in report.unused:
        print("unused", item.name)
"""

__version__ = "0.3.0"

from .domain import StatusRecord, StalenessResult, RepoInventory
from .infra import TunasyncClient, SearchClient
from .staleness import find_stale_repos, is_stale
from .traffic import TrafficReport, RepoTraffic, query_traffic
from .windows import TimeWindow, WindowKind
from .config import load_config

__all__ = [
    "__version__",
    # Domain objects
    "StatusRecord",
    "StalenessResult",
    "RepoInventory",
    # Clients
    "TunasyncClient",
    "SearchClient",
    # Core
    "find_stale_repos",
    "is_stale",
    "TimeWindow",
    "WindowKind",
    "TrafficReport",
    "RepoTraffic",
    "query_traffic",
    # Configuration
    "load_config",
]
