"""Client-side sync: cache, REST client, session and the workflows page store."""

from __future__ import annotations

from salesmeraki_workflows.sync.cache import JsonFileStore, KeyValueStore, MemoryStore, WorkflowCache
from salesmeraki_workflows.sync.client import WorkflowApiClient
from salesmeraki_workflows.sync.session import Session, SessionProvider, static_session
from salesmeraki_workflows.sync.store import CACHED_DATA_NOTICE, WorkflowStore

__all__ = [
    "CACHED_DATA_NOTICE",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "Session",
    "SessionProvider",
    "WorkflowApiClient",
    "WorkflowCache",
    "WorkflowStore",
    "static_session",
]
