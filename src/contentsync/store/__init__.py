"""Remote store gateway: protocol, table registry and the REST backend."""

from contentsync.store.base import TABLES, RemoteStore, key_column

__all__ = ["TABLES", "RemoteStore", "key_column"]
