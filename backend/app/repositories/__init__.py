"""
Repository Layer - Data Access

Services never build queries themselves: they ask `get_storage()` for the
process-wide Storage and call its methods, which return domain models.
"""
import logging
from typing import Optional

from app.core.config import settings
from app.repositories.base import Storage
from app.repositories.memory_storage import DocumentStorage

logger = logging.getLogger(__name__)

_storage: Optional[Storage] = None


def get_storage() -> Storage:
    """Return the storage selected by STORAGE_BACKEND (created on first use)"""
    global _storage
    if _storage is None:
        backend = settings.STORAGE_BACKEND.lower()
        if backend == "postgres":
            from app.repositories.postgres_storage import PostgresStorage
            _storage = PostgresStorage()
        elif backend == "memory":
            _storage = DocumentStorage()
        else:
            raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
        logger.info(f"Storage backend: {backend}")
    return _storage


def set_storage(storage: Optional[Storage]) -> None:
    """Replace the process-wide storage (used by tests and scripts)"""
    global _storage
    _storage = storage


__all__ = ['Storage', 'DocumentStorage', 'get_storage', 'set_storage']
