"""
tunasync status client for tunasync-monitor.

Fetches the status manifest every tunasync mirror publishes at
``/static/tunasync.json``: a JSON array with one object per repository.

No authentication; requests carry a fixed User-Agent so mirror operators
can tell monitor traffic apart in their access logs.
"""

import logging
from typing import List

import requests

from ..domain.status import StatusRecord
from ..exit_codes import DecodeError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_STATUS_PATH = "/static/tunasync.json"
DEFAULT_USER_AGENT = "tunasync-monitor"


class TunasyncClient:
    """
    Client for tunasync mirror status manifests.

    Example:
        client = TunasyncClient()
        for record in client.get_status("mirrors.tuna.tsinghua.edu.cn"):
            print(record.name, record.status)
    """

    def __init__(
        self,
        timeout: float = 30,
        user_agent: str = DEFAULT_USER_AGENT,
        scheme: str = "https",
        status_path: str = DEFAULT_STATUS_PATH,
    ):
        """
        Initialize TunasyncClient.

        Args:
            timeout: HTTP request timeout in seconds
            user_agent: Value of the User-Agent header
            scheme: URL scheme used to reach the servers
            status_path: Path of the status manifest on each server
        """
        self.timeout = timeout
        self.scheme = scheme
        self.status_path = status_path if status_path.startswith('/') else f"/{status_path}"
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': user_agent,
            'Accept': 'application/json',
        })

    def status_url(self, server: str) -> str:
        return f"{self.scheme}://{server}{self.status_path}"

    def get_status(self, server: str) -> List[StatusRecord]:
        """
        Fetch and decode the status manifest of one server.

        Args:
            server: Hostname (optionally with port) of the mirror

        Returns:
            StatusRecords sorted by last_update_ts, most recent first

        Raises:
            TransportError: the request could not be completed
            DecodeError: the body is not a valid status manifest
        """
        url = self.status_url(server)
        logger.debug(f"Fetching {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"{server}: request to {url} failed: {e}", server=server) from e

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(f"{server}: status body is not valid JSON: {e}", server=server) from e

        records = decode_status(data, server)
        logger.debug(f"{server}: {len(records)} repositories")
        return records

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'TunasyncClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def decode_status(data, server: str = "") -> List[StatusRecord]:
    """
    Turn a decoded tunasync.json document into sorted StatusRecords.

    Raises:
        DecodeError: if the document is not an array of status objects
    """
    if not isinstance(data, list):
        raise DecodeError(
            f"{server}: status body must be a JSON array, got {type(data).__name__}",
            server=server,
        )

    records = []
    for entry in data:
        try:
            records.append(StatusRecord.from_api_response(entry))
        except DecodeError as e:
            raise DecodeError(f"{server}: {e}", server=server) from e

    return sort_by_last_update(records)


def sort_by_last_update(records: List[StatusRecord]) -> List[StatusRecord]:
    """Most recently updated first."""
    return sorted(records, key=lambda record: record.last_update_ts, reverse=True)
