"""Snapshot-based undo/redo for catalog mutations."""

from .manager import (
    DEFAULT_SNAPSHOT_LIMIT,
    DEFAULT_SNAPSHOT_STORES,
    HistoryInfo,
    SnapshotManager,
    UndoResult,
)

__all__ = [
    "SnapshotManager",
    "UndoResult",
    "HistoryInfo",
    "DEFAULT_SNAPSHOT_STORES",
    "DEFAULT_SNAPSHOT_LIMIT",
]
