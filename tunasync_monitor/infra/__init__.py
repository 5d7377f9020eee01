"""
Infrastructure layer for tunasync-monitor.

Contains abstractions for external systems:
- TunasyncClient: mirror status manifests over HTTP
- SearchClient: Elasticsearch search API

These provide clean interfaces that can be mocked for testing.
"""

from .tunasync_client import TunasyncClient, decode_status, sort_by_last_update
from .search_client import SearchClient

__all__ = [
    'TunasyncClient',
    'decode_status',
    'sort_by_last_update',
    'SearchClient',
]
