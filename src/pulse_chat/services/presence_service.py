from __future__ import annotations

from datetime import timedelta

from pulse_chat.application.exceptions import NotFoundError, ValidationError
from pulse_chat.application.ports.clock import Clock, system_clock
from pulse_chat.application.uow import UnitOfWork
from pulse_chat.domain.entities.user import User
from pulse_chat.domain.value_objects.enums import ChangeEvent


async def upsert_user(
    external_id: str,
    name: str,
    email: str,
    image_url: str,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> User:
    """Create or refresh the profile synced from the identity provider.

    A new user starts online. An existing user only gets its profile fields
    updated; presence is left to heartbeats.
    """
    if not external_id:
        raise ValidationError("external_id is required")

    user = await uow.users_w.upsert(external_id, name, email, image_url, clock.now())
    await uow.outbox.add(
        ChangeEvent.USER_UPDATED,
        {"external_id": user.external_id},
    )
    await uow.commit()
    return user


async def set_online_status(
    external_id: str,
    is_online: bool,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> bool:
    """Record a heartbeat or visibility change. Unknown users are ignored."""
    now = clock.now()
    updated = await uow.users_w.set_online_status(external_id, is_online, now)
    if not updated:
        return False

    await uow.outbox.add(
        ChangeEvent.PRESENCE_CHANGED,
        {
            "external_id": external_id,
            "is_online": is_online,
            "last_seen": now.isoformat(),
        },
    )
    await uow.commit()
    return True


async def list_users_except(external_id: str, uow: UnitOfWork) -> list[User]:
    return await uow.users.list_all_except(external_id)


async def get_user(external_id: str, uow: UnitOfWork) -> User:
    user = await uow.users.get_by_external_id(external_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_users(external_ids: list[str], uow: UnitOfWork) -> list[User]:
    """Users for the given ids in request order. Unknown ids are dropped."""
    wanted = list(dict.fromkeys(external_ids))
    if not wanted:
        return []
    found = {u.external_id: u for u in await uow.users.list_by_external_ids(wanted)}
    return [found[eid] for eid in wanted if eid in found]


async def mark_stale_users_offline(
    stale_after: timedelta,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> list[str]:
    """Flip users whose heartbeats stopped arriving to offline."""
    cutoff = clock.now() - stale_after
    flipped = await uow.users_w.mark_stale_offline(cutoff)
    for external_id in flipped:
        await uow.outbox.add(
            ChangeEvent.PRESENCE_CHANGED,
            {"external_id": external_id, "is_online": False},
        )
    await uow.commit()
    return flipped
