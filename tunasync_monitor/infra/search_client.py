"""
Elasticsearch search client for tunasync-monitor.

Talks to the Elasticsearch REST API directly over HTTP:
- One ``_search`` request against a comma-joined list of indices
- Missing indices are tolerated (``allow_no_indices``/``ignore_unavailable``)
- Errors surface immediately, there are no retries
"""

import logging
from typing import Any, Dict, Sequence

import requests

from ..exit_codes import QueryError, ResponseShapeError

logger = logging.getLogger(__name__)

DEFAULT_ELASTICSEARCH_URL = "http://localhost:9200"


class SearchClient:
    """
    Minimal Elasticsearch client for aggregation queries.

    Example:
        client = SearchClient("http://localhost:9200")
        body = client.search(["filebeat-2020.01.*"], {"size": 0})
    """

    def __init__(self, url: str = DEFAULT_ELASTICSEARCH_URL, timeout: float = 60):
        """
        Initialize SearchClient.

        Args:
            url: Base URL of the Elasticsearch node
            timeout: HTTP request timeout in seconds
        """
        self.url = url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        })

    def search_url(self, indices: Sequence[str]) -> str:
        target = ','.join(indices) if indices else '_all'
        return f"{self.url}/{target}/_search"

    def search(self, indices: Sequence[str], body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run one search request.

        Args:
            indices: Index names or wildcard patterns
            body: Search request body

        Returns:
            Decoded JSON response

        Raises:
            QueryError: the request failed or Elasticsearch returned an error status
            ResponseShapeError: the response body is not a JSON object
        """
        url = self.search_url(indices)
        params = {
            'allow_no_indices': 'true',
            'ignore_unavailable': 'true',
        }
        logger.debug(f"Searching {len(indices)} index pattern(s) at {self.url}")

        try:
            response = self.session.post(url, params=params, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise QueryError(f"Elasticsearch request to {self.url} failed: {e}") from e

        if not response.ok:
            raise QueryError(
                f"Elasticsearch returned HTTP {response.status_code}: {_error_reason(response)}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ResponseShapeError(f"Elasticsearch returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ResponseShapeError(
                f"Elasticsearch response must be an object, got {type(data).__name__}"
            )
        return data

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'SearchClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _error_reason(response: requests.Response) -> str:
    """Best-effort extraction of error.reason from an Elasticsearch error body."""
    try:
        error = response.json().get('error')
    except (ValueError, AttributeError):
        return response.text[:200]
    if isinstance(error, dict):
        return str(error.get('reason') or error.get('type') or error)
    return str(error)
