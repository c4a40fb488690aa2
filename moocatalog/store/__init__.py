"""
Record store module.

Flat, line-delimited JSON files, one per entity type:
- RecordStore: append / read_all / ensure_exists / overwrite_all
- write_stores_atomically: staged replacement of several stores

Invariants:
    - Reads tolerate malformed lines
    - Overwrites replace whole files via rename
"""

from .record_store import RecordStore, serialize_record, write_stores_atomically

__all__ = ["RecordStore", "serialize_record", "write_stores_atomically"]
