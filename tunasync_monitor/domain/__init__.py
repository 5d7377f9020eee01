"""
Domain objects for tunasync-monitor.

- StatusRecord: one repository entry of a mirror's status manifest
- StalenessResult: a repository flagged as out of sync
- RepoInventory: repository names and sizes gathered across servers
"""

from .status import StatusRecord, StalenessResult, RepoInventory

__all__ = [
    'StatusRecord',
    'StalenessResult',
    'RepoInventory',
]
