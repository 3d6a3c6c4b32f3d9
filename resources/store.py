"""Store abstraction shared by the PostgreSQL and in-memory backends.

Stores deal in columns, never payload field names: the manager translates and
validates before anything reaches a store. Both backends honour the same
contract:

- rows come back as plain dicts keyed by column name
- single lookups of a room carry `space_title` and `space_description`
  from the parent space, listings carry `space_title`; rooms without a space
  still appear, with those columns null
- listings are ordered newest-created first
- `update` always refreshes `updated_at`, even with no values
- deleting a space removes its shops and detaches every other room
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .kinds import ResourceKind

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

class ResourceStore(ABC):
    """Persistence for every resource kind."""

    async def open(self) -> None:
        """Acquire whatever the backend needs before serving requests."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the backend is reachable."""

    @abstractmethod
    async def space_exists(self, space_id: str) -> bool:
        """Return True if a space with this natural key exists."""

    @abstractmethod
    async def fetch(self, kind: ResourceKind, key: str) -> Optional[Row]:
        """Fetch one row by natural key, joined with its parent space."""

    @abstractmethod
    async def fetch_all(self, kind: ResourceKind, space_id: Optional[str] = None) -> List[Row]:
        """Fetch every row of a kind, optionally only those under one space."""

    @abstractmethod
    async def insert(self, kind: ResourceKind, values: Dict[str, Any]) -> Row:
        """Insert a row and return it."""

    @abstractmethod
    async def update(self, kind: ResourceKind, key: str, values: Dict[str, Any]) -> Optional[Row]:
        """Overwrite the given columns and return the row, or None if absent."""

    @abstractmethod
    async def delete(self, kind: ResourceKind, key: str) -> Optional[Row]:
        """Delete a row and return it, or None if absent."""

_store: Optional[ResourceStore] = None

def create_store(backend: str) -> ResourceStore:
    """Build a store for a backend name.

    Raises:
        ValueError: If the backend is unknown
    """
    if backend == 'postgres':
        from .postgres import PostgresStore
        return PostgresStore()
    if backend == 'memory':
        from .memory import MemoryStore
        return MemoryStore()
    raise ValueError(f"Unknown store backend: {backend}")

async def get_store() -> ResourceStore:
    """Get the process-wide store, opening it on first use."""
    global _store

    if _store is None:
        from config import settings_conf

        store = create_store(settings_conf['store_backend'])
        await store.open()
        _store = store
        logger.info(f"Using {settings_conf['store_backend']} store")

    return _store

async def close_store() -> None:
    """Close the process-wide store."""
    global _store

    if _store is not None:
        await _store.close()
        _store = None
