"""Seed development data: creates the tables, two users and a short chat."""
from __future__ import annotations

import asyncio
import logging
import uuid

from direct_chat.application.ports.clock import SystemClock
from direct_chat.domain.entities.message import Message
from direct_chat.domain.value_objects.ids import UserId
from direct_chat.infrastructure.db.base import Base
from direct_chat.infrastructure.db.models import UserModel
from direct_chat.infrastructure.db.session import AsyncSessionLocal, engine
from direct_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

ALICE = UserId("dev-alice")
BOB = UserId("dev-bob")


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    clock = SystemClock()
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        for user_id, name in ((ALICE, "Alice Example"), (BOB, "Bob Example")):
            if await session.get(UserModel, user_id) is None:
                session.add(UserModel(id=user_id, full_name=name, email=f"{user_id}@example.com"))
        await uow.flush()

        messages_data = [
            (ALICE, BOB, "Hi Bob!"),
            (BOB, ALICE, "Hey, how is it going?"),
            (ALICE, BOB, "Good. Did you get the photos?"),
            (BOB, ALICE, "Yes, thanks"),
        ]
        for sender_id, receiver_id, text in messages_data:
            msg = Message(
                id=uuid.uuid4(),
                sender_id=sender_id,
                receiver_id=receiver_id,
                text=text,
                image_url=None,
                created_at=clock.now(),
            )
            await uow.messages_w.add(msg)

        await uow.commit()
        logger.info("Seeded %s and %s with %d messages", ALICE, BOB, len(messages_data))

    await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
