from __future__ import annotations

from pulse_chat.domain.entities.user import User
from pulse_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        external_id=model.external_id,
        name=model.name,
        email=model.email,
        image_url=model.image_url,
        is_online=model.is_online,
        last_seen=model.last_seen,
        created_at=model.created_at,
    )
