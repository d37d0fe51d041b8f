from __future__ import annotations

from direct_chat.domain.entities.user import User
from direct_chat.domain.value_objects.ids import UserId
from direct_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=UserId(model.id),
        full_name=model.full_name,
        email=model.email,
        profile_pic=model.profile_pic,
        created_at=model.created_at,
    )
