"""Sync engine for ghostsync - pull and push of Ghost Inspector suites."""

from .comparator import SyncAction, SyncDecision, SyncPlan, TestComparator, diff
from .engine import SyncEngine
from .pull import PullApplier, PullResult, extract_archive
from .push import PushApplier, PushFailure, PushResult
from .scanner import (
    LocalSnapshot,
    LocalSnapshotReader,
    RemoteSnapshot,
    RemoteSnapshotReader,
)
from .state import SuiteMapping, SuiteMappingStore

__all__ = [
    "SyncEngine",
    "SyncAction",
    "SyncDecision",
    "SyncPlan",
    "TestComparator",
    "diff",
    "PullApplier",
    "PullResult",
    "extract_archive",
    "PushApplier",
    "PushFailure",
    "PushResult",
    "LocalSnapshot",
    "LocalSnapshotReader",
    "RemoteSnapshot",
    "RemoteSnapshotReader",
    "SuiteMapping",
    "SuiteMappingStore",
]
