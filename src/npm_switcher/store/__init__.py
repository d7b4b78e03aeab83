"""Access to Proxy Manager's persisted proxy host records."""

from ._mock import MockRecordStore
from ._models import ForwardUpdate, ProxyRecord
from ._protocol import RecordStore
from ._sqlite import PROXY_HOST_TABLE, SQLiteRecordStore

__all__ = [
    "PROXY_HOST_TABLE",
    "ForwardUpdate",
    "MockRecordStore",
    "ProxyRecord",
    "RecordStore",
    "SQLiteRecordStore",
]
