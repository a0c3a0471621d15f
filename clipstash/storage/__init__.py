"""SQLite persistence shared by clipstash stores."""

from clipstash.storage.database import SCHEMA_VERSION, Database, storage_errors

__all__ = ["Database", "SCHEMA_VERSION", "storage_errors"]
