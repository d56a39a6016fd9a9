"""Maintenance worker: purges expired typing markers, sweeps stale presence,
and trims published outbox rows."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from pulse_chat.config import settings
from pulse_chat.infrastructure.db.session import AsyncSessionLocal
from pulse_chat.infrastructure.db.uow import SqlAlchemyUoW
from pulse_chat.services import presence_service, typing_service

logger = logging.getLogger(__name__)


async def run_maintenance_once() -> None:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        removed = await typing_service.purge_expired_markers(
            uow, window=timedelta(milliseconds=settings.TYPING_FRESHNESS_MS),
        )
        if removed:
            logger.info("Purged %d expired typing markers", removed)

        if settings.PRESENCE_STALE_SECONDS > 0:
            flipped = await presence_service.mark_stale_users_offline(
                timedelta(seconds=settings.PRESENCE_STALE_SECONDS), uow,
            )
            if flipped:
                logger.info("Marked %d stale users offline", len(flipped))

        cutoff = datetime.now(timezone.utc) - timedelta(hours=settings.OUTBOX_RETENTION_HOURS)
        trimmed = await uow.outbox.purge_sent(cutoff)
        await uow.commit()
        if trimmed:
            logger.info("Trimmed %d published outbox records", trimmed)


async def run_maintenance_worker() -> None:
    stale = settings.PRESENCE_STALE_SECONDS
    if 0 < stale < 2 * settings.PRESENCE_HEARTBEAT_SECONDS:
        logger.warning(
            "PRESENCE_STALE_SECONDS=%d is shorter than two heartbeats (%ds); "
            "active users may flicker offline",
            stale,
            settings.PRESENCE_HEARTBEAT_SECONDS,
        )
    logger.info(
        "Maintenance worker started (interval=%.1fs, presence_stale=%ds)",
        settings.MAINTENANCE_INTERVAL_SECONDS,
        settings.PRESENCE_STALE_SECONDS,
    )
    while True:
        try:
            await run_maintenance_once()
        except Exception:
            logger.exception("Maintenance loop error")
        await asyncio.sleep(settings.MAINTENANCE_INTERVAL_SECONDS)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_maintenance_worker())


if __name__ == "__main__":
    main()
