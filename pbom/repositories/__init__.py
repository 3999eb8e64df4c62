from pbom.repositories.records import RecordStore, StorageError

__all__ = [
    "RecordStore",
    "StorageError",
]
