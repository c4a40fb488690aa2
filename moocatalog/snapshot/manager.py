"""
Snapshot-based undo and redo.

Before every mutation the service captures the covered stores into a
snapshot appended to snapshots.jsonl. Undo pops the newest snapshot and
writes its lists back; the state being replaced is pushed onto
redo-snapshots.jsonl so the undo can itself be undone.

Snapshot format (one line per snapshot):
    {"id": ..., "timestamp": ..., "message": ...,
     "actors": [...], "scenes": [...], "sections": [...], "content": [...]}

Invariants:
    - Both stacks hold at most ``limit`` snapshots; the oldest is evicted
    - Capturing a snapshot empties the redo stack
    - Capture failures are logged and never abort the mutation
    - Undo/redo only rewrite the stores a snapshot actually contains

How to change safely:
    - Adding a covered store is safe: older snapshots without it leave
      that store untouched on restore
    - Never change the line format of existing snapshot files
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..config import ProjectPaths
from ..errors import NothingToRedoError, NothingToUndoError
from ..ids import generate_id, now_iso
from ..schema import record_validator
from ..store import RecordStore, write_stores_atomically

logger = logging.getLogger(__name__)

Record = dict[str, Any]

DEFAULT_SNAPSHOT_STORES: tuple[str, ...] = ("actors", "scenes", "sections", "content")
DEFAULT_SNAPSHOT_LIMIT = 50


@dataclass
class UndoResult:
    """Outcome of an undo or redo.

    Attributes:
        message: Human-readable summary ("UNDO: Create actor: Ada")
        snapshot_id: Id of the snapshot that was restored
        restored: Restored store contents, keyed by store name
        can_undo: Whether another undo is possible
        can_redo: Whether a redo is possible
    """

    message: str
    snapshot_id: str
    restored: dict[str, list[Record]] = field(default_factory=dict)
    can_undo: bool = False
    can_redo: bool = False


@dataclass
class HistoryInfo:
    """State of the undo/redo stacks.

    Attributes:
        count: Number of undo snapshots
        can_undo: Whether undo is possible
        undo_message: Message of the snapshot undo would restore
        can_redo: Whether redo is possible
        redo_message: Message of the snapshot redo would restore
        redo_count: Number of redo snapshots
    """

    count: int
    can_undo: bool
    undo_message: str | None
    can_redo: bool
    redo_message: str | None
    redo_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "can_undo": self.can_undo,
            "undo_message": self.undo_message,
            "can_redo": self.can_redo,
            "redo_message": self.redo_message,
            "redo_count": self.redo_count,
        }


class SnapshotManager:
    """Undo/redo stacks for one project.

    Attributes:
        paths: Project path layout
        stores: Catalog stores captured in each snapshot
        limit: Maximum snapshots kept per stack

    Example:
        >>> manager = SnapshotManager(paths)
        >>> await manager.capture_before_write("Create actor: Ada")
        >>> ...  # mutate
        >>> await manager.undo()
    """

    def __init__(
        self,
        paths: ProjectPaths,
        stores: Sequence[str] = DEFAULT_SNAPSHOT_STORES,
        limit: int = DEFAULT_SNAPSHOT_LIMIT,
    ) -> None:
        if limit < 1:
            raise ValueError(f"Snapshot limit must be >= 1, got {limit}")
        self.paths = paths
        self.stores = tuple(stores)
        self.limit = limit
        self._undo_stack = RecordStore(paths.snapshots)
        self._redo_stack = RecordStore(paths.redo_snapshots)
        self._validate_snapshot = record_validator("snapshot")

    async def _read_stack(self, stack: RecordStore) -> list[Record]:
        return await stack.read_all(self._validate_snapshot)

    async def _current_state(self, catalog: Any = None) -> dict[str, list[Record]]:
        if catalog is not None:
            return {name: list(catalog.store(name)) for name in self.stores}
        state = {}
        for name in self.stores:
            state[name] = await RecordStore(self.paths.store_path(name)).read_all()
        return state

    def _wrap(self, message: str, state: dict[str, list[Record]]) -> Record:
        return {"id": generate_id(), "timestamp": now_iso(), "message": message, **state}

    async def capture_before_write(self, message: str, catalog: Any = None) -> Record | None:
        """Record the covered stores before a mutation.

        Args:
            message: Description of the mutation about to happen
            catalog: Loaded catalog to reuse instead of re-reading stores

        Returns:
            The stored snapshot, or None if capture failed
        """
        try:
            snapshot = self._wrap(message, await self._current_state(catalog))
            stack = await self._read_stack(self._undo_stack)
            stack.append(snapshot)
            await write_stores_atomically(
                {
                    self._undo_stack: stack[-self.limit :],
                    self._redo_stack: [],
                }
            )
        except Exception:
            logger.error(
                "Snapshot capture failed",
                extra={"root": str(self.paths.root), "snapshot_message": message},
                exc_info=True,
            )
            return None

        logger.debug(
            "Snapshot captured",
            extra={"snapshot_id": snapshot["id"], "snapshot_message": message},
        )
        return snapshot

    async def undo(self) -> UndoResult:
        """Restore the newest snapshot.

        Raises:
            NothingToUndoError: If the undo stack is empty
        """
        stack = await self._read_stack(self._undo_stack)
        if not stack:
            raise NothingToUndoError()
        result = await self._swap(stack, self._undo_stack, self._redo_stack, "UNDO")
        result.can_undo = bool(stack)
        result.can_redo = True
        return result

    async def redo(self) -> UndoResult:
        """Re-apply the state replaced by the last undo.

        Raises:
            NothingToRedoError: If the redo stack is empty
        """
        stack = await self._read_stack(self._redo_stack)
        if not stack:
            raise NothingToRedoError()
        result = await self._swap(stack, self._redo_stack, self._undo_stack, "REDO")
        result.can_undo = True
        result.can_redo = bool(stack)
        return result

    async def _swap(
        self,
        source: list[Record],
        source_store: RecordStore,
        target_store: RecordStore,
        label: str,
    ) -> UndoResult:
        """Pop from ``source``, push current state onto the other stack, restore."""
        snapshot = source.pop()
        restored_stores = [name for name in self.stores if isinstance(snapshot.get(name), list)]

        current = {}
        for name in restored_stores:
            current[name] = await RecordStore(self.paths.store_path(name)).read_all()
        target = await self._read_stack(target_store)
        target.append(self._wrap(snapshot.get("message", ""), current))

        restored = {name: snapshot[name] for name in restored_stores}
        writes: dict[RecordStore, list[Record]] = {
            RecordStore(self.paths.store_path(name)): records for name, records in restored.items()
        }
        writes[source_store] = source
        writes[target_store] = target[-self.limit :]
        await write_stores_atomically(writes)

        message = f"{label}: {snapshot.get('message', '')}"
        logger.info(
            "Snapshot restored",
            extra={"action": label.lower(), "snapshot_id": snapshot["id"], "stores": restored_stores},
        )
        return UndoResult(message=message, snapshot_id=snapshot["id"], restored=restored)

    async def history(self) -> HistoryInfo:
        """Describe both stacks."""
        undo_stack = await self._read_stack(self._undo_stack)
        redo_stack = await self._read_stack(self._redo_stack)
        return HistoryInfo(
            count=len(undo_stack),
            can_undo=bool(undo_stack),
            undo_message=undo_stack[-1].get("message") if undo_stack else None,
            can_redo=bool(redo_stack),
            redo_message=redo_stack[-1].get("message") if redo_stack else None,
            redo_count=len(redo_stack),
        )

    async def clear_history(self) -> None:
        """Empty both stacks."""
        await write_stores_atomically({self._undo_stack: [], self._redo_stack: []})
        logger.info("Snapshot history cleared", extra={"root": str(self.paths.root)})
