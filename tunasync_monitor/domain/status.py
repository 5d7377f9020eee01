"""
Status domain objects for tunasync-monitor.

StatusRecord is one entry of a mirror's tunasync.json manifest.
It's immutable and serializable for JSONL output.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Iterable, Tuple

from ..exit_codes import DecodeError


# (field name, expected type) pairs every manifest entry must carry
_REQUIRED_FIELDS: Tuple[Tuple[str, type], ...] = (
    ('name', str),
    ('is_master', bool),
    ('status', str),
    ('last_update', str),
    ('last_update_ts', int),
    ('last_ended', str),
    ('last_ended_ts', int),
    ('upstream', str),
    ('size', str),
)

_OPTIONAL_FIELDS: Tuple[Tuple[str, type], ...] = (
    ('next_schedule', str),
    ('next_schedule_ts', int),
)


def _check_type(key: str, value: Any, expected: type) -> None:
    # bool is an int subclass; timestamps must be real integers
    if expected is int and isinstance(value, bool):
        raise DecodeError(f"field '{key}' must be an integer, got {value!r}")
    if not isinstance(value, expected):
        raise DecodeError(
            f"field '{key}' must be {expected.__name__}, got {type(value).__name__}"
        )


@dataclass(frozen=True)
class StatusRecord:
    """Sync status of one repository on one mirror server."""
    name: str
    is_master: bool
    status: str
    last_update: str
    last_update_ts: int
    last_ended: str
    last_ended_ts: int
    upstream: str
    size: str
    next_schedule: Optional[str] = None
    next_schedule_ts: Optional[int] = None

    @property
    def never_updated(self) -> bool:
        """A zero timestamp means the mirror has never synced successfully."""
        return self.last_update_ts == 0

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'StatusRecord':
        """
        Create from one element of a tunasync.json array.

        Raises:
            DecodeError: if a required field is missing or mistyped
        """
        if not isinstance(data, dict):
            raise DecodeError(f"status entry must be an object, got {type(data).__name__}")

        values: Dict[str, Any] = {}
        for key, expected in _REQUIRED_FIELDS:
            if key not in data:
                label = data.get('name', '<unnamed>')
                raise DecodeError(f"status entry {label!r} is missing field '{key}'")
            _check_type(key, data[key], expected)
            values[key] = data[key]

        for key, expected in _OPTIONAL_FIELDS:
            value = data.get(key)
            if value is not None:
                _check_type(key, value, expected)
            values[key] = value

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'name': self.name,
            'is_master': self.is_master,
            'status': self.status,
            'last_update': self.last_update,
            'last_update_ts': self.last_update_ts,
            'last_ended': self.last_ended,
            'last_ended_ts': self.last_ended_ts,
            'upstream': self.upstream,
            'size': self.size,
        }
        if self.next_schedule is not None:
            data['next_schedule'] = self.next_schedule
        if self.next_schedule_ts is not None:
            data['next_schedule_ts'] = self.next_schedule_ts
        return data


@dataclass(frozen=True)
class StalenessResult:
    """A repository whose last successful sync is older than the threshold."""
    name: str
    days_ago: int

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'days_ago': self.days_ago}


@dataclass
class RepoInventory:
    """
    Repositories seen across all polled servers.

    Keeps every size string reported for a repository, in the order the
    servers were polled. Sizes are display annotations and never summed.
    """
    sizes: Dict[str, List[str]] = field(default_factory=dict)

    def add(self, record: StatusRecord) -> None:
        self.sizes.setdefault(record.name, []).append(record.size)

    def add_all(self, records: Iterable[StatusRecord]) -> None:
        for record in records:
            self.add(record)

    def sizes_of(self, name: str) -> List[str]:
        return list(self.sizes.get(name, []))

    def candidates(self) -> List[str]:
        """Sorted, deduplicated repository names."""
        return sorted(self.sizes)

    def __len__(self) -> int:
        return len(self.sizes)

    def __contains__(self, name: object) -> bool:
        return name in self.sizes
