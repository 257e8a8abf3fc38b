"""Single entry point through which a chat message becomes durable and visible.

Both transports call :meth:`MessageRelay.send`. A send is validated, persisted
in one store transaction, and only then broadcast to the conversation room.
Sends into the same conversation are serialized from persist through
broadcast, so every subscriber sees messages in persisted order.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from app.domain.senders import CustomerSender, EmployeeSender, Sender
from app.domain.state_machine import ConversationLifecycle
from app.infra.db.message_store import MessageStore, MessageStoreFactory
from app.infra.db.models import Conversation, Message
from app.infra.realtime.channels import conversation_channel
from app.infra.realtime.events import RealtimeEvent
from app.infra.realtime.publisher import NoopRealtimePublisher, RealtimePublisher
from app.schemas.message import (
    MAX_CONTENT_LENGTH,
    MAX_IMAGE_URL_LENGTH,
    message_payload,
)
from app.services.access_control import ensure_company_access
from app.services.errors import (
    ConversationAccessDeniedError,
    ConversationClosedError,
    ConversationNotFoundError,
    CustomerNotFoundError,
    InvalidMessageError,
    NotAssignedError,
    SenderBlockedError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SendMessageCommand:
    conversation_id: UUID
    sender: Sender
    content: str | None = None
    image_url: str | None = None


@dataclass(slots=True)
class RelayResult:
    message: Message
    delivered: int


def _validate_message(content: str, image_url: str | None) -> None:
    # Blank text counts as absent, but accepted text is stored verbatim.
    if not content.strip() and not (image_url or "").strip():
        raise InvalidMessageError()
    if len(content) > MAX_CONTENT_LENGTH:
        raise InvalidMessageError(
            f"Message content exceeds {MAX_CONTENT_LENGTH} characters"
        )
    if image_url is not None and len(image_url) > MAX_IMAGE_URL_LENGTH:
        raise InvalidMessageError(
            f"Image URL exceeds {MAX_IMAGE_URL_LENGTH} characters"
        )


class MessageRelay:
    def __init__(
        self,
        store_factory: MessageStoreFactory,
        publisher: RealtimePublisher | None = None,
        *,
        allow_closed_conversations: bool = False,
    ) -> None:
        self._store_factory = store_factory
        self._publisher = publisher or NoopRealtimePublisher()
        self._allow_closed_conversations = allow_closed_conversations
        self._conversation_locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    async def send(self, command: SendMessageCommand) -> RelayResult:
        content = command.content or ""
        image_url = command.image_url or None
        _validate_message(content, image_url)

        async with self._lock_for(command.conversation_id):
            try:
                async with self._store_factory() as store:
                    message = await self._persist(store, command, content, image_url)
            except (SQLAlchemyError, ConnectionError, TimeoutError) as exc:
                logger.exception(
                    "Failed to persist message for conversation %s",
                    command.conversation_id,
                )
                raise StoreUnavailableError() from exc

            delivered = await self._publisher.broadcast(
                conversation_channel(message.conversation_id),
                RealtimeEvent.MESSAGE_RECEIVED,
                message_payload(message),
            )

        logger.debug(
            "Message %s in conversation %s delivered to %d connection(s)",
            message.id,
            message.conversation_id,
            delivered,
        )
        return RelayResult(message=message, delivered=delivered)

    async def _persist(
        self,
        store: MessageStore,
        command: SendMessageCommand,
        content: str,
        image_url: str | None,
    ) -> Message:
        conversation = await store.get_conversation(command.conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(command.conversation_id)

        sender = command.sender
        if isinstance(sender, CustomerSender):
            await self._authorize_customer(store, conversation, sender)
        elif isinstance(sender, EmployeeSender):
            self._authorize_employee(conversation, sender)
        else:
            raise TypeError(f"Unsupported sender: {sender!r}")

        if not self._allow_closed_conversations and ConversationLifecycle.is_closed(
            conversation.status
        ):
            raise ConversationClosedError(conversation.id)

        message = await store.create_message(
            conversation_id=conversation.id,
            content=content,
            image_url=image_url,
            sender_type=sender.sender_type,
            sender_id=sender.sender_id,
        )
        await store.touch_conversation(conversation)
        await store.commit()
        return message

    async def _authorize_customer(
        self,
        store: MessageStore,
        conversation: Conversation,
        sender: CustomerSender,
    ) -> None:
        if conversation.customer_id != sender.customer_id:
            raise ConversationAccessDeniedError(conversation.id)

        # Read under a row lock in the send transaction; never cached.
        customer = await store.get_customer(sender.customer_id, for_update=True)
        if customer is None:
            raise CustomerNotFoundError(sender.customer_id)
        if customer.blocked:
            logger.info(
                "Rejected message from blocked customer %s in conversation %s",
                customer.id,
                conversation.id,
            )
            raise SenderBlockedError(customer.id)

    @staticmethod
    def _authorize_employee(conversation: Conversation, sender: EmployeeSender) -> None:
        ensure_company_access(sender.company_id, conversation.company_id)

        assigned_employee_id = conversation.employee_id
        if (
            assigned_employee_id is not None
            and assigned_employee_id != sender.employee_id
            and not sender.is_admin
        ):
            raise NotAssignedError(conversation.id, sender.employee_id)

    def _lock_for(self, conversation_id: UUID) -> asyncio.Lock:
        lock = self._conversation_locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._conversation_locks[conversation_id] = lock
        return lock
