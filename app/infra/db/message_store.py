from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.enums import SenderType
from app.infra.db.models import Conversation, Customer, Message
from app.infra.db.repositories import (
    ConversationRepository,
    CustomerRepository,
    MessageRepository,
)


class MessageStore(Protocol):
    async def get_conversation(self, conversation_id: UUID) -> Conversation | None: ...

    async def get_customer(
        self, customer_id: UUID, *, for_update: bool = False
    ) -> Customer | None: ...

    async def create_message(
        self,
        conversation_id: UUID,
        content: str,
        image_url: str | None,
        sender_type: SenderType,
        sender_id: UUID | None,
    ) -> Message: ...

    async def touch_conversation(self, conversation: Conversation) -> None: ...

    async def commit(self) -> None: ...


MessageStoreFactory = Callable[[], AbstractAsyncContextManager[MessageStore]]


class SqlMessageStore:
    """Message store backed by one database session (one transaction)."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.conversations = ConversationRepository(session)
        self.customers = CustomerRepository(session)
        self.messages = MessageRepository(session)

    async def get_conversation(self, conversation_id: UUID) -> Conversation | None:
        return await self.conversations.get_by_id(conversation_id)

    async def get_customer(
        self, customer_id: UUID, *, for_update: bool = False
    ) -> Customer | None:
        if for_update:
            return await self.customers.get_by_id_for_update(customer_id)
        return await self.customers.get_by_id(customer_id)

    async def create_message(
        self,
        conversation_id: UUID,
        content: str,
        image_url: str | None,
        sender_type: SenderType,
        sender_id: UUID | None,
    ) -> Message:
        return await self.messages.create(
            conversation_id=conversation_id,
            sender_type=sender_type,
            content=content,
            image_url=image_url,
            sender_id=sender_id,
        )

    async def touch_conversation(self, conversation: Conversation) -> None:
        await self.conversations.touch(conversation)

    async def commit(self) -> None:
        await self.session.commit()


def sql_message_store_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> MessageStoreFactory:
    @asynccontextmanager
    async def open_store() -> AsyncIterator[MessageStore]:
        async with session_factory() as session:
            yield SqlMessageStore(session)

    return open_store
