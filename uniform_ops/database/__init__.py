from uniform_ops.database.mongo import MongoRecordStore
from uniform_ops.database.snapshot import SnapshotRecordStore
from uniform_ops.database.store import RecordStore

__all__ = [
    "MongoRecordStore",
    "RecordStore",
    "SnapshotRecordStore",
]
