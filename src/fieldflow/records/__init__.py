"""Reading records: schemas, builders and storage.

Usage:
    from fieldflow.records import RecordStore, SQLiteBlobStore, save

    store = RecordStore(SQLiteBlobStore())
    record = save("annual", {"field": "Dixon", "well": "Cory 1"}, registry, store)
"""

from .schemas import (
    AnnualRecord,
    DailyActivityRecord,
    DailyPressureRecord,
    ObservationRecord,
    ReadingRecord,
    RecordKind,
    ShutInRecord,
    WellReading,
    WellStatusRecord,
    record_from_dict,
    record_type,
)
from .storage import MemoryBlobStore, RecordStore, SQLiteBlobStore
from .builders import build_record, save

__all__ = [
    # Record types
    "ReadingRecord",
    "WellReading",
    "DailyPressureRecord",
    "AnnualRecord",
    "ShutInRecord",
    "ObservationRecord",
    "WellStatusRecord",
    "DailyActivityRecord",
    "RecordKind",
    "record_from_dict",
    "record_type",
    # Storage
    "RecordStore",
    "MemoryBlobStore",
    "SQLiteBlobStore",
    # Builders
    "build_record",
    "save",
]
