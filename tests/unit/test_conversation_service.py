from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import pytest

from app.domain.enums import ConversationStatus, EmployeeRole
from app.domain.exceptions import InvalidConversationTransition
from app.infra.realtime.channels import conversation_channel
from app.infra.realtime.events import RealtimeEvent
from app.services.access_control import EmployeePrincipal
from app.services.conversation_service import ConversationService
from app.services.errors import (
    ConversationNotFoundError,
    InvalidAssigneeError,
    TenantAccessDeniedError,
)


class DummySession:
    def __init__(self) -> None:
        self.commits = 0

    async def commit(self) -> None:
        self.commits += 1


@dataclass(slots=True)
class FakeEmployee:
    id: UUID
    company_id: UUID


@dataclass(slots=True)
class FakeConversation:
    id: UUID
    company_id: UUID
    customer_id: UUID
    status: ConversationStatus = ConversationStatus.OPEN
    employee_id: UUID | None = None
    closed_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class FakeConversationRepository:
    def __init__(self) -> None:
        self.conversations: dict[UUID, FakeConversation] = {}

    async def get_with_participants(self, conversation_id: UUID) -> FakeConversation | None:
        return self.conversations.get(conversation_id)

    async def list_for_company(
        self,
        company_id: UUID,
        status_filter: ConversationStatus | None = None,
        assigned: bool | None = None,
        limit: int = 200,
    ) -> list[FakeConversation]:
        items = [
            conversation
            for conversation in self.conversations.values()
            if conversation.company_id == company_id
        ]
        if status_filter is not None:
            items = [item for item in items if item.status == status_filter]
        if assigned is not None:
            items = [item for item in items if (item.employee_id is not None) == assigned]
        return sorted(items, key=lambda item: item.updated_at, reverse=True)[:limit]


class FakeMessageRepository:
    def __init__(self) -> None:
        self.latest: dict[UUID, Any] = {}

    async def latest_by_conversation(self, conversation_ids: list[UUID]) -> dict[UUID, Any]:
        return {key: value for key, value in self.latest.items() if key in conversation_ids}

    async def list_by_conversation(self, conversation_id: UUID) -> list[Any]:
        return []


class FakeEmployeeRepository:
    def __init__(self) -> None:
        self.employees: dict[UUID, FakeEmployee] = {}

    async def get_by_id(self, employee_id: UUID) -> FakeEmployee | None:
        return self.employees.get(employee_id)


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[tuple[str, RealtimeEvent, dict[str, Any]]] = []

    async def broadcast(self, channel: str, event: RealtimeEvent, payload: dict[str, Any]) -> int:
        self.events.append((channel, event, payload))
        return 1


@dataclass(slots=True)
class Fixture:
    service: ConversationService
    session: DummySession
    conversations: FakeConversationRepository
    messages: FakeMessageRepository
    employees: FakeEmployeeRepository
    publisher: RecordingPublisher
    principal: EmployeePrincipal


def build_fixture(role: EmployeeRole = EmployeeRole.AGENT) -> Fixture:
    session = DummySession()
    conversations = FakeConversationRepository()
    messages = FakeMessageRepository()
    employees = FakeEmployeeRepository()
    publisher = RecordingPublisher()
    principal = EmployeePrincipal(employee_id=uuid4(), company_id=uuid4(), role=role)
    employees.employees[principal.employee_id] = FakeEmployee(
        id=principal.employee_id, company_id=principal.company_id
    )
    service = ConversationService(
        session=session,
        conversations=conversations,
        messages=messages,
        employees=employees,
        realtime=publisher,
    )
    return Fixture(service, session, conversations, messages, employees, publisher, principal)


def add_conversation(fixture: Fixture, company_id: UUID | None = None, **kwargs: Any) -> FakeConversation:
    conversation = FakeConversation(
        id=uuid4(),
        company_id=company_id or fixture.principal.company_id,
        customer_id=uuid4(),
        **kwargs,
    )
    fixture.conversations.conversations[conversation.id] = conversation
    return conversation


@pytest.mark.asyncio
async def test_list_is_tenant_scoped_and_carries_latest_message() -> None:
    fixture = build_fixture()
    own = add_conversation(fixture)
    add_conversation(fixture, company_id=uuid4())
    fixture.messages.latest[own.id] = "latest"

    summaries = await fixture.service.list_conversations(fixture.principal)

    assert [summary.conversation.id for summary in summaries] == [own.id]
    assert summaries[0].latest_message == "latest"


@pytest.mark.asyncio
async def test_list_filters_by_status_and_assignment() -> None:
    fixture = build_fixture()
    add_conversation(fixture)
    assigned = add_conversation(
        fixture,
        status=ConversationStatus.ASSIGNED,
        employee_id=fixture.principal.employee_id,
    )
    add_conversation(fixture, status=ConversationStatus.CLOSED)

    by_status = await fixture.service.list_conversations(
        fixture.principal, status_filter=ConversationStatus.ASSIGNED
    )
    by_assignment = await fixture.service.list_conversations(fixture.principal, assigned=True)

    assert [summary.conversation.id for summary in by_status] == [assigned.id]
    assert [summary.conversation.id for summary in by_assignment] == [assigned.id]


@pytest.mark.asyncio
async def test_get_conversation_of_other_tenant_is_denied() -> None:
    fixture = build_fixture()
    foreign = add_conversation(fixture, company_id=uuid4())

    with pytest.raises(TenantAccessDeniedError):
        await fixture.service.get_conversation(fixture.principal, foreign.id)
    with pytest.raises(ConversationNotFoundError):
        await fixture.service.get_conversation(fixture.principal, uuid4())


@pytest.mark.asyncio
async def test_assign_and_unassign_publish_updates() -> None:
    fixture = build_fixture()
    conversation = add_conversation(fixture)

    await fixture.service.assign(
        fixture.principal, conversation.id, fixture.principal.employee_id
    )
    assert conversation.status == ConversationStatus.ASSIGNED
    assert conversation.employee_id == fixture.principal.employee_id

    await fixture.service.assign(fixture.principal, conversation.id, None)
    assert conversation.status == ConversationStatus.OPEN
    assert conversation.employee_id is None

    assert fixture.session.commits == 2
    channel, event, payload = fixture.publisher.events[0]
    assert channel == conversation_channel(conversation.id)
    assert event == RealtimeEvent.CONVERSATION_UPDATED
    assert payload["conversation"]["status"] == "ASSIGNED"
    assert payload["conversation"]["employeeId"] == str(fixture.principal.employee_id)
    assert fixture.publisher.events[1][2]["conversation"]["employeeId"] is None


@pytest.mark.asyncio
async def test_assign_rejects_employee_from_other_company() -> None:
    fixture = build_fixture()
    conversation = add_conversation(fixture)
    outsider = FakeEmployee(id=uuid4(), company_id=uuid4())
    fixture.employees.employees[outsider.id] = outsider

    with pytest.raises(InvalidAssigneeError):
        await fixture.service.assign(fixture.principal, conversation.id, outsider.id)

    assert conversation.status == ConversationStatus.OPEN
    assert fixture.session.commits == 0


@pytest.mark.asyncio
async def test_close_is_idempotent_and_terminal() -> None:
    fixture = build_fixture()
    conversation = add_conversation(fixture)

    await fixture.service.close(fixture.principal, conversation.id)
    first_closed_at = conversation.closed_at
    await fixture.service.close(fixture.principal, conversation.id)

    assert conversation.status == ConversationStatus.CLOSED
    assert first_closed_at is not None
    assert conversation.closed_at == first_closed_at
    assert fixture.session.commits == 1
    assert len(fixture.publisher.events) == 1

    with pytest.raises(InvalidConversationTransition):
        await fixture.service.assign(
            fixture.principal, conversation.id, fixture.principal.employee_id
        )
