import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from app.core.rate_limit import InMemoryRateLimiter, RateLimitRule
from app.domain.senders import CustomerSender
from app.infra.db.message_store import MessageStoreFactory
from app.infra.realtime.channels import conversation_channel
from app.infra.realtime.events import SystemEvent
from app.infra.realtime.hub import RealtimeConnection, RoomRegistry
from app.services.access_control import EmployeePrincipal, ensure_company_access
from app.services.errors import (
    ConversationAccessDeniedError,
    ConversationClosedError,
    ConversationNotFoundError,
    CustomerNotFoundError,
    InvalidMessageError,
    NotAssignedError,
    SenderBlockedError,
    StoreUnavailableError,
    TenantAccessDeniedError,
)
from app.services.message_relay import MessageRelay, SendMessageCommand

logger = logging.getLogger(__name__)

CLIENT_ERRORS = (
    ConversationAccessDeniedError,
    ConversationClosedError,
    ConversationNotFoundError,
    CustomerNotFoundError,
    InvalidMessageError,
    NotAssignedError,
    SenderBlockedError,
    StoreUnavailableError,
    TenantAccessDeniedError,
)


class ConnectionRole(str, Enum):
    CUSTOMER = "customer"
    EMPLOYEE = "employee"


@dataclass(frozen=True, slots=True)
class ConnectionScope:
    role: ConnectionRole
    customer_id: UUID | None = None
    principal: EmployeePrincipal | None = None

    @classmethod
    def for_customer(cls, customer_id: UUID) -> "ConnectionScope":
        return cls(role=ConnectionRole.CUSTOMER, customer_id=customer_id)

    @classmethod
    def for_employee(cls, principal: EmployeePrincipal) -> "ConnectionScope":
        return cls(role=ConnectionRole.EMPLOYEE, principal=principal)


class InvalidActionError(ValueError):
    code = "InvalidPayload"


def _parse_uuid(raw: Any) -> UUID | None:
    if not isinstance(raw, str):
        return None
    try:
        return UUID(raw)
    except ValueError:
        return None


def _optional_text(message: dict[str, Any], key: str) -> str | None:
    value = message.get(key)
    if value is None or isinstance(value, str):
        return value
    raise InvalidActionError(f"'{key}' must be a string")


class RealtimeSession:
    """Action loop state for one websocket connection.

    Customers may subscribe to and send into their own conversations only.
    Employees may subscribe to any conversation of their company; they send
    through the REST endpoint. A successful ``send_message`` gets no direct
    reply: the sender sees its message through the room broadcast.
    """

    def __init__(
        self,
        websocket: RealtimeConnection,
        scope: ConnectionScope,
        registry: RoomRegistry,
        relay: MessageRelay,
        store_factory: MessageStoreFactory,
        rate_limiter: InMemoryRateLimiter | None = None,
        rate_rule: RateLimitRule | None = None,
    ) -> None:
        self.websocket = websocket
        self.scope = scope
        self.registry = registry
        self.relay = relay
        self.store_factory = store_factory
        self.rate_limiter = rate_limiter
        self.rate_rule = rate_rule

    async def send_connected(self) -> None:
        await self._send_event(SystemEvent.CONNECTED, {"role": self.scope.role.value})

    async def handle_text(self, raw_message: str) -> None:
        if raw_message.strip().lower() == "ping":
            await self._send_event(SystemEvent.PONG, {})
            return

        try:
            message = json.loads(raw_message)
        except json.JSONDecodeError:
            await self._send_error("InvalidPayload", "Expected JSON payload")
            return
        if not isinstance(message, dict):
            await self._send_error("InvalidPayload", "Expected JSON object")
            return

        action = message.get("action")
        try:
            if action == "ping":
                await self._send_event(SystemEvent.PONG, {})
            elif action == "subscribe":
                await self._subscribe(message)
            elif action == "unsubscribe":
                await self._unsubscribe(message)
            elif action == "send_message":
                await self._send_message(message)
            else:
                await self._send_error("UnsupportedAction", "Unsupported action")
        except InvalidActionError as exc:
            await self._send_error(exc.code, str(exc))
        except CLIENT_ERRORS as exc:
            await self._send_error(exc.code, str(exc))

    async def close(self) -> None:
        await self.registry.disconnect(self.websocket)

    async def _subscribe(self, message: dict[str, Any]) -> None:
        conversation_id = self._require_conversation_id(message)
        await self._authorize_conversation(conversation_id)

        channel = conversation_channel(conversation_id)
        await self.registry.subscribe(channel, self.websocket)
        await self._send_event(SystemEvent.SUBSCRIBED, {"channel": channel})

    async def _unsubscribe(self, message: dict[str, Any]) -> None:
        conversation_id = self._require_conversation_id(message)

        channel = conversation_channel(conversation_id)
        await self.registry.unsubscribe(channel, self.websocket)
        await self._send_event(SystemEvent.UNSUBSCRIBED, {"channel": channel})

    async def _send_message(self, message: dict[str, Any]) -> None:
        if self.scope.role != ConnectionRole.CUSTOMER or self.scope.customer_id is None:
            await self._send_error(
                "UnsupportedAction", "Unsupported action for current role"
            )
            return

        conversation_id = self._require_conversation_id(message)
        content = _optional_text(message, "content")
        image_url = _optional_text(message, "image_url")

        if self.rate_limiter is not None and self.rate_rule is not None:
            allowed = await self.rate_limiter.allow(
                f"customer:{self.scope.customer_id}", self.rate_rule
            )
            if not allowed:
                await self._send_error("RateLimited", "Too many messages, slow down")
                return

        await self.relay.send(
            SendMessageCommand(
                conversation_id=conversation_id,
                sender=CustomerSender(customer_id=self.scope.customer_id),
                content=content,
                image_url=image_url,
            )
        )

    async def _authorize_conversation(self, conversation_id: UUID) -> None:
        try:
            async with self.store_factory() as store:
                conversation = await store.get_conversation(conversation_id)
        except (SQLAlchemyError, ConnectionError, TimeoutError) as exc:
            logger.exception("Conversation lookup failed for %s", conversation_id)
            raise StoreUnavailableError() from exc

        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        if self.scope.role == ConnectionRole.CUSTOMER:
            if conversation.customer_id != self.scope.customer_id:
                raise ConversationAccessDeniedError(conversation_id)
        elif self.scope.principal is not None:
            ensure_company_access(self.scope.principal.company_id, conversation.company_id)
        else:
            raise TenantAccessDeniedError()

    @staticmethod
    def _require_conversation_id(message: dict[str, Any]) -> UUID:
        conversation_id = _parse_uuid(message.get("conversation_id"))
        if conversation_id is None:
            raise InvalidActionError("Invalid conversation_id")
        return conversation_id

    async def _send_error(self, code: str, detail: str) -> None:
        await self._send_event(SystemEvent.ERROR, {"code": code, "detail": detail})

    async def _send_event(self, event: SystemEvent, payload: dict[str, Any]) -> None:
        await self.websocket.send_json(
            {
                "event": event.value,
                "payload": payload,
                "sent_at": datetime.now(UTC).isoformat(),
            }
        )
