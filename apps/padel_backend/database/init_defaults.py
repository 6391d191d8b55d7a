#!/usr/bin/env python3
"""
Initialize default club data.
This runs on startup to make sure the seeded admin identity exists.
"""

import asyncio
import logging
import os

from dotenv import load_dotenv

from padel_backend.services import roster_service
from padel_backend.services.club_store import ClubStore
from padel_backend.services.storage_service import SqlKeyValueStore

load_dotenv()

logger = logging.getLogger(__name__)

# Default club admin, keyed by phone number
DEFAULT_ADMIN_PHONE = os.getenv("ADMIN_PHONE", "900000000")
DEFAULT_ADMIN_NAME = os.getenv("ADMIN_NAME", "Club Admin")


async def init_defaults(store: ClubStore):
    """Initialize default club values."""
    admin = await roster_service.ensure_admin(store, DEFAULT_ADMIN_PHONE, DEFAULT_ADMIN_NAME)
    logger.info(f"✓ Default admin available: {admin.phone}")


async def main():
    from padel_backend.database.db import init_database

    await init_database()
    store = await ClubStore.load(SqlKeyValueStore())
    await init_defaults(store)
    await store.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
