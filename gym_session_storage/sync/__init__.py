"""
Sync module.

Local-first sync between the on-device collections and the account's
remote row: last-writer-wins merge, debounced pushes, interval pulls.
"""

from .coordinator import SyncCoordinator
from .merge import MergeReport, merge_records, merge_with_report, parse_timestamp
from .scheduler import RecurringTask, ScheduledTask
from .types import SyncOperation, SyncOutcome, SyncResult, SyncState, SyncStatus

__all__ = [
    "SyncCoordinator",
    "MergeReport",
    "merge_records",
    "merge_with_report",
    "parse_timestamp",
    "RecurringTask",
    "ScheduledTask",
    "SyncOperation",
    "SyncOutcome",
    "SyncResult",
    "SyncState",
    "SyncStatus",
]
