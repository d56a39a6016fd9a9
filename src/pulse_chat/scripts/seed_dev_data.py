"""Seed development data: a few users, a direct chat and a group chat."""
from __future__ import annotations

import asyncio
import logging

from pulse_chat.infrastructure.db.session import AsyncSessionLocal, dispose_engine
from pulse_chat.infrastructure.db.uow import SqlAlchemyUoW
from pulse_chat.services import (
    conversation_service,
    message_service,
    presence_service,
)

logger = logging.getLogger(__name__)

USERS = [
    ("user_alice", "Alice", "alice@example.com"),
    ("user_bob", "Bob", "bob@example.com"),
    ("user_carol", "Carol", "carol@example.com"),
]


async def seed() -> None:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)

        for external_id, name, email in USERS:
            await presence_service.upsert_user(external_id, name, email, "", uow)

        direct, _ = await conversation_service.get_or_create_direct_conversation(
            "user_alice", "user_bob", uow,
        )
        for sender, content in [
            ("user_alice", "hi Bob"),
            ("user_bob", "hey! how is it going?"),
            ("user_alice", "good, shipping the new release today"),
        ]:
            await message_service.send_message(direct.id, sender, content, uow)

        group = await conversation_service.create_group_conversation(
            "user_alice", ["user_bob", "user_carol"], "Team", uow,
        )
        await message_service.send_message(group.id, "user_carol", "standup in 5", uow)

        logger.info("Seeded direct %s and group %s", direct.id, group.id)
    await dispose_engine()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
