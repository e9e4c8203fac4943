"""
Initialize the database: create all tables and seed the default organizations.
Run with: python -m scripts.init_db  (DATABASE_URL must be set)
"""

import asyncio

from healthsync.config import get_settings
from healthsync.logging_config import configure_logging
from healthsync.services.organization_service import OrganizationService
from healthsync.stores import create_sql_storage


async def init():
    settings = get_settings()
    if not settings.database_url:
        raise SystemExit("DATABASE_URL is not set")
    print("Creating database tables...")
    storage = await create_sql_storage(settings.database_url)
    try:
        seeded = await OrganizationService(storage).seed()
    finally:
        await storage.close()
    print(f"All tables created successfully. Seeded {seeded} organizations.")


if __name__ == "__main__":
    configure_logging(get_settings().log_level, json_logs=False)
    asyncio.run(init())
