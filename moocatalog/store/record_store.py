"""
Line-delimited JSON record store.

Each entity type lives in one file holding one JSON object per line, in
append order. The store supports four operations:
- append: add one record at the end
- read_all: read every parseable record
- ensure_exists: create an empty store file
- overwrite_all: replace the whole file (temp file + rename)

Invariants:
    - read_all never raises for bad content; malformed lines are skipped
    - read_all on a missing file returns an empty list
    - Only "\n" ends a record; lines are decoded one at a time
    - overwrite_all is atomic per file and deterministic (same records, same bytes)
    - Blocking file I/O runs in the default executor

How to change safely:
    - Keep the compact serialization; existing files are compared byte for byte
    - There is no locking here; serialize writers above this layer
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import stat
import tempfile
import warnings
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from ..errors import MalformedRecordWarning, PartialCascadeError

logger = logging.getLogger(__name__)

Record = dict[str, Any]
RecordValidator = Callable[[Record], tuple[bool, list[str]]]

_UMASK = os.umask(0)
os.umask(_UMASK)


def serialize_record(record: Mapping[str, Any]) -> str:
    """Serialize a record as one compact JSON line (no newline)."""
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


def _render(records: Iterable[Mapping[str, Any]]) -> str:
    lines = [serialize_record(r) for r in records]
    return "\n".join(lines) + ("\n" if lines else "")


class RecordStore:
    """Append-only line store for one entity type.

    Attributes:
        path: Store file path

    Example:
        >>> store = RecordStore(paths.actors)
        >>> await store.append({"id": "...", "display_name": "Ada"})
        >>> actors = await store.read_all()
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"RecordStore({str(self.path)!r})"

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.get_event_loop().run_in_executor(None, fn, *args)

    async def append(self, record: Mapping[str, Any]) -> None:
        """Append one record as a new line.

        Args:
            record: JSON-serializable mapping
        """
        line = serialize_record(record) + "\n"
        await self._run(self._append_line, line)
        logger.debug("Appended record", extra={"path": str(self.path), "id": record.get("id")})

    def _append_line(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line)

    async def read_all(self, validator: RecordValidator | None = None) -> list[Record]:
        """Read every record in the store.

        Lines are split on "\n" only and decoded one at a time. Blank lines
        are ignored. Lines that are not valid UTF-8, fail to parse, are not
        JSON objects, or fail ``validator`` are skipped with a warning.

        Args:
            validator: Optional callable returning (is_valid, errors)

        Returns:
            Records in file order; empty if the file does not exist
        """
        data = await self._run(self._read_bytes)
        if data is None:
            return []

        records: list[Record] = []
        for line_number, raw in enumerate(data.split(b"\n"), start=1):
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                self._warn_malformed(line_number, f"invalid UTF-8: {e.reason}")
                continue
            if not line.strip():
                continue
            try:
                parsed = json.loads(line)
            except json.JSONDecodeError as e:
                self._warn_malformed(line_number, f"invalid JSON: {e.msg}")
                continue

            if not isinstance(parsed, dict):
                self._warn_malformed(line_number, f"expected object, got {type(parsed).__name__}")
                continue

            if validator is not None:
                is_valid, errors = validator(parsed)
                if not is_valid:
                    self._warn_malformed(line_number, "; ".join(errors))
                    continue

            records.append(parsed)

        return records

    def _read_bytes(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def _warn_malformed(self, line_number: int, reason: str) -> None:
        message = f"Malformed record in {self.path} at line {line_number}: {reason}"
        logger.warning(
            "Skipping malformed record",
            extra={"path": str(self.path), "line_number": line_number, "reason": reason},
        )
        warnings.warn(message, MalformedRecordWarning, stacklevel=3)

    async def ensure_exists(self) -> None:
        """Create the store file (and parents) if it does not exist."""
        await self._run(self._touch)

    def _touch(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(exist_ok=True)

    async def overwrite_all(self, records: Iterable[Mapping[str, Any]]) -> None:
        """Replace the store contents with ``records``.

        The new contents are written to a temporary file in the same
        directory and renamed over the store.

        Args:
            records: Records to write, one per line
        """
        content = _render(records)
        await self._run(self._replace_with, content)
        logger.debug("Overwrote store", extra={"path": str(self.path)})

    def _replace_with(self, content: str) -> None:
        tmp_path = _stage(self.path, content)
        try:
            os.replace(tmp_path, self.path)
        except BaseException:
            _discard(tmp_path)
            raise


def _stage(path: Path, content: str) -> Path:
    """Write ``content`` to a temp file beside ``path`` and return its path.

    The temp file takes the mode of the existing store, or the umask
    default for a new one.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, _target_mode(path))
    except BaseException:
        _discard(Path(tmp_name))
        raise
    return Path(tmp_name)


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        return 0o666 & ~_UMASK


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


async def write_stores_atomically(
    writes: Mapping[RecordStore, Iterable[Mapping[str, Any]]],
) -> None:
    """Replace several stores with staged writes.

    Every store is first written to a temporary file. Only when all of
    them are staged are they renamed into place, one after another.

    Args:
        writes: New contents per store

    Raises:
        PartialCascadeError: If a rename fails after others succeeded
        OSError: If staging fails (no store has been modified)
    """
    rendered = [(store, _render(records)) for store, records in writes.items()]
    await asyncio.get_event_loop().run_in_executor(None, _commit_staged, rendered)


def _commit_staged(rendered: list[tuple[RecordStore, str]]) -> None:
    staged: list[tuple[RecordStore, Path]] = []
    try:
        for store, content in rendered:
            staged.append((store, _stage(store.path, content)))
    except BaseException:
        for _, tmp_path in staged:
            _discard(tmp_path)
        raise

    committed: list[str] = []
    for index, (store, tmp_path) in enumerate(staged):
        try:
            os.replace(tmp_path, store.path)
        except OSError as e:
            pending = [s.path.name for s, _ in staged[index:]]
            for _, leftover in staged[index:]:
                _discard(leftover)
            logger.error(
                "Multi-store write failed partway",
                extra={"committed": committed, "pending": pending},
                exc_info=True,
            )
            if not committed:
                raise
            raise PartialCascadeError(
                f"Failed to replace {store.path.name}: {e}",
                committed=committed,
                pending=pending,
            ) from e
        committed.append(store.path.name)
