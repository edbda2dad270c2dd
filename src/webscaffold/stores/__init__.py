"""Optional SQL-backed subsystems managed by the registry."""

from .base import SqlStore, Store, table_name

__all__ = ["SqlStore", "Store", "table_name"]
