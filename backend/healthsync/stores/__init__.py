import structlog

from healthsync.config import Settings
from healthsync.stores.base import Storage
from healthsync.stores.memory import create_memory_storage
from healthsync.stores.sql import create_sql_storage

logger = structlog.get_logger(__name__)


async def build_storage(settings: Settings) -> Storage:
    """Select the storage implementation configured for this process."""
    backend = settings.resolved_storage_backend
    if backend == "sql":
        if not settings.database_url:
            raise RuntimeError("STORAGE_BACKEND=sql requires DATABASE_URL")
        logger.info("storage_selected", backend="sql")
        return await create_sql_storage(settings.database_url)
    if backend == "memory":
        logger.warning("storage_selected", backend="memory", detail="data will be lost on restart")
        return create_memory_storage()
    raise RuntimeError(f"Unknown STORAGE_BACKEND: {backend}")


__all__ = ["Storage", "build_storage", "create_memory_storage", "create_sql_storage"]
