"""Historical data persistence layer.

Provides the history series helpers (parse, serialize, merge), the
key/value store backends and the merge-on-read history cache.
"""

from pendash.data.cache import CachedHistory, HistoryCache
from pendash.data.history import merge_history, parse_history, serialize_history
from pendash.data.kv import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore

__all__ = [
    "CachedHistory",
    "HistoryCache",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "merge_history",
    "parse_history",
    "serialize_history",
]
