"""
Cross-reference mirrored repositories with access-log traffic.

Access logs are shipped to Elasticsearch by filebeat's nginx module, which
stores the first path segment of each request in
``nginx.access.first_level``. A terms aggregation over that field,
restricted to the repositories the mirrors carry, counts requests per
repository. Candidates missing from the aggregation had no traffic at all.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .domain.status import RepoInventory
from .exit_codes import ResponseShapeError
from .infra.search_client import SearchClient
from .windows import TimeWindow, DEFAULT_INDEX_PREFIX

logger = logging.getLogger(__name__)

AGGREGATION_NAME = "repo_count"
DEFAULT_FIELD = "nginx.access.first_level"


@dataclass(frozen=True)
class RepoTraffic:
    """Request count for one repository."""
    name: str
    count: int
    sizes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'count': self.count, 'sizes': list(self.sizes)}


@dataclass
class TrafficReport:
    """Outcome of the traffic query."""
    requests: List[RepoTraffic] = field(default_factory=list)
    unused: List[RepoTraffic] = field(default_factory=list)


def build_aggregation_query(
    candidates: Sequence[str],
    field_name: str = DEFAULT_FIELD,
    bucket_size: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Build the search body counting requests per candidate repository.

    Buckets are ordered by ascending document count so the least used
    repositories come first. bucket_size defaults to one bucket per
    candidate.
    """
    if bucket_size is None:
        bucket_size = len(candidates)
    return {
        "size": 0,
        "aggs": {
            AGGREGATION_NAME: {
                "terms": {
                    "field": field_name,
                    "include": list(candidates),
                    "order": {"_count": "asc"},
                    "size": bucket_size,
                }
            }
        },
    }


def parse_buckets(response: Dict[str, Any]) -> List[Tuple[str, int]]:
    """
    Extract (repository, doc_count) pairs from a search response.

    A response that touched no shards (no index matched the window) has no
    aggregation section and yields no buckets.

    Raises:
        ResponseShapeError: the aggregation or its buckets are malformed
    """
    aggregations = response.get('aggregations')
    if aggregations is None:
        shards = response.get('_shards')
        if isinstance(shards, dict) and shards.get('total') == 0:
            logger.info("No log index matched the query window")
            return []
        raise ResponseShapeError("response has no 'aggregations' section")

    try:
        buckets = aggregations[AGGREGATION_NAME]['buckets']
    except (KeyError, TypeError) as e:
        raise ResponseShapeError(
            f"response is missing aggregations.{AGGREGATION_NAME}.buckets"
        ) from e

    if not isinstance(buckets, list):
        raise ResponseShapeError(f"aggregations.{AGGREGATION_NAME}.buckets is not a list")

    result = []
    for bucket in buckets:
        if not isinstance(bucket, dict):
            raise ResponseShapeError(f"bucket is not an object: {bucket!r}")
        key = bucket.get('key')
        count = bucket.get('doc_count')
        if not isinstance(key, str) or not isinstance(count, int) or isinstance(count, bool):
            raise ResponseShapeError(f"bucket lacks a string key and integer doc_count: {bucket!r}")
        result.append((key, count))
    return result


def cross_reference(inventory: RepoInventory,
                    buckets: Sequence[Tuple[str, int]]) -> TrafficReport:
    """
    Split the inventory into repositories with traffic and unused ones.

    Bucket order is kept; unused repositories come out sorted.
    """
    report = TrafficReport()
    seen = set()
    for name, count in buckets:
        seen.add(name)
        report.requests.append(RepoTraffic(name, count, tuple(inventory.sizes_of(name))))

    for name in inventory.candidates():
        if name not in seen:
            report.unused.append(RepoTraffic(name, 0, tuple(inventory.sizes_of(name))))
    return report


def query_traffic(
    client: SearchClient,
    inventory: RepoInventory,
    window: TimeWindow,
    index_prefix: str = DEFAULT_INDEX_PREFIX,
    field_name: str = DEFAULT_FIELD,
    bucket_size: Optional[int] = None,
    today: Optional[date] = None,
) -> TrafficReport:
    """
    Run the traffic query for every repository in the inventory.

    Raises:
        QueryError: the search request failed
        ResponseShapeError: the response lacks the expected aggregation
    """
    candidates = inventory.candidates()
    indices = window.index_names(index_prefix, today=today)
    body = build_aggregation_query(candidates, field_name, bucket_size)

    logger.debug(f"Querying {len(candidates)} repositories over {len(indices)} index name(s)")
    response = client.search(indices, body)
    buckets = parse_buckets(response)
    logger.debug(f"Got {len(buckets)} buckets")
    return cross_reference(inventory, buckets)
