"""
Key-value persistence for club state.

Values are JSON-compatible snapshots. Two adapters share one interface:
SqlKeyValueStore (SQLAlchemy, the default at runtime) and
InMemoryKeyValueStore (tests and throwaway sessions).
"""

import copy
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from padel_backend.database import db
from padel_backend.database.models import StoredValue
from padel_backend.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Async get/set/remove over named buckets."""

    async def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    async def remove(self, key: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Release adapter resources. Default: nothing to release."""


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)


class SqlKeyValueStore(KeyValueStore):
    """
    Buckets stored as rows of the ``kv_entries`` table.

    Args:
        session_factory: Callable returning an AsyncSession context manager.
            Defaults to ``db.AsyncSessionLocal`` resolved at call time.
    """

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]] = None):
        self._session_factory = session_factory

    def _session(self) -> AsyncSession:
        factory = self._session_factory or db.AsyncSessionLocal
        return factory()

    async def get(self, key: str) -> Optional[Any]:
        async with self._session() as session:
            result = await session.execute(select(StoredValue).where(StoredValue.key == key))
            entry = result.scalar_one_or_none()
            return entry.value if entry else None

    async def set(self, key: str, value: Any) -> None:
        async with self._session() as session:
            entry = await session.get(StoredValue, key)
            if entry is None:
                session.add(StoredValue(key=key, value=value))
            else:
                entry.value = value
                entry.updated_at = utcnow()
            await session.commit()
        logger.debug(f"Stored snapshot for key '{key}'")

    async def remove(self, key: str) -> None:
        async with self._session() as session:
            await session.execute(delete(StoredValue).where(StoredValue.key == key))
            await session.commit()
        logger.debug(f"Removed key '{key}'")
