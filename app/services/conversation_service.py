from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.enums import ConversationStatus, TransitionAction
from app.domain.state_machine import ConversationLifecycle
from app.infra.db.models import Conversation, Message
from app.infra.db.repositories import (
    ConversationRepository,
    EmployeeRepository,
    MessageRepository,
)
from app.infra.realtime.channels import conversation_channel
from app.infra.realtime.events import RealtimeEvent
from app.infra.realtime.publisher import NoopRealtimePublisher, RealtimePublisher
from app.services.access_control import EmployeePrincipal, ensure_company_access
from app.services.errors import ConversationNotFoundError, InvalidAssigneeError


@dataclass(slots=True)
class ConversationSummary:
    conversation: Conversation
    latest_message: Message | None


@dataclass(slots=True)
class ConversationDetail:
    conversation: Conversation
    messages: list[Message]


class ConversationService:
    def __init__(
        self,
        session: AsyncSession,
        conversations: ConversationRepository | None = None,
        messages: MessageRepository | None = None,
        employees: EmployeeRepository | None = None,
        realtime: RealtimePublisher | None = None,
    ) -> None:
        self.session = session
        self.conversations = conversations or ConversationRepository(session)
        self.messages = messages or MessageRepository(session)
        self.employees = employees or EmployeeRepository(session)
        self.realtime = realtime or NoopRealtimePublisher()

    async def list_conversations(
        self,
        principal: EmployeePrincipal,
        status_filter: ConversationStatus | None = None,
        assigned: bool | None = None,
    ) -> list[ConversationSummary]:
        conversations = await self.conversations.list_for_company(
            company_id=principal.company_id,
            status_filter=status_filter,
            assigned=assigned,
        )
        latest = await self.messages.latest_by_conversation(
            [conversation.id for conversation in conversations]
        )
        return [
            ConversationSummary(
                conversation=conversation,
                latest_message=latest.get(conversation.id),
            )
            for conversation in conversations
        ]

    async def get_conversation(
        self,
        principal: EmployeePrincipal,
        conversation_id: UUID,
    ) -> ConversationDetail:
        conversation = await self._get_conversation_or_raise(principal, conversation_id)
        messages = await self.messages.list_by_conversation(conversation.id)
        return ConversationDetail(conversation=conversation, messages=messages)

    async def assign(
        self,
        principal: EmployeePrincipal,
        conversation_id: UUID,
        employee_id: UUID | None,
    ) -> Conversation:
        conversation = await self._get_conversation_or_raise(principal, conversation_id)

        if employee_id is None:
            conversation.status = ConversationLifecycle.transition(
                conversation.status, TransitionAction.UNASSIGN
            )
        else:
            assignee = await self.employees.get_by_id(employee_id)
            if assignee is None or assignee.company_id != principal.company_id:
                raise InvalidAssigneeError(employee_id)
            conversation.status = ConversationLifecycle.transition(
                conversation.status, TransitionAction.ASSIGN
            )
        conversation.employee_id = employee_id

        await self.session.commit()
        conversation = await self._reload(conversation.id)
        await self._emit_conversation_updated(conversation)
        return conversation

    async def close(
        self,
        principal: EmployeePrincipal,
        conversation_id: UUID,
    ) -> Conversation:
        conversation = await self._get_conversation_or_raise(principal, conversation_id)
        if ConversationLifecycle.is_closed(conversation.status):
            return conversation

        conversation.status = ConversationLifecycle.transition(
            conversation.status, TransitionAction.CLOSE
        )
        conversation.closed_at = datetime.now(UTC)

        await self.session.commit()
        conversation = await self._reload(conversation.id)
        await self._emit_conversation_updated(conversation)
        return conversation

    async def _get_conversation_or_raise(
        self,
        principal: EmployeePrincipal,
        conversation_id: UUID,
    ) -> Conversation:
        conversation = await self.conversations.get_with_participants(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        ensure_company_access(principal.company_id, conversation.company_id)
        return conversation

    async def _reload(self, conversation_id: UUID) -> Conversation:
        conversation = await self.conversations.get_with_participants(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    async def _emit_conversation_updated(self, conversation: Conversation) -> None:
        await self.realtime.broadcast(
            conversation_channel(conversation.id),
            RealtimeEvent.CONVERSATION_UPDATED,
            {"conversation": self._conversation_payload(conversation)},
        )

    @staticmethod
    def _conversation_payload(conversation: Conversation) -> dict[str, Any]:
        return {
            "id": str(conversation.id),
            "companyId": str(conversation.company_id),
            "customerId": str(conversation.customer_id),
            "employeeId": (
                str(conversation.employee_id)
                if conversation.employee_id is not None
                else None
            ),
            "status": conversation.status.value,
            "closedAt": (
                conversation.closed_at.isoformat()
                if conversation.closed_at is not None
                else None
            ),
            "createdAt": conversation.created_at.isoformat(),
            "updatedAt": conversation.updated_at.isoformat(),
        }
