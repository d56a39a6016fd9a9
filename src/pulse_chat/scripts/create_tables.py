"""Create all tables for a fresh database (development / tests)."""
from __future__ import annotations

import asyncio
import logging

from pulse_chat.infrastructure.db import models  # noqa: F401
from pulse_chat.infrastructure.db.base import Base
from pulse_chat.infrastructure.db.session import dispose_engine, engine

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await dispose_engine()
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_tables())


if __name__ == "__main__":
    main()
