import asyncio
from uuid import UUID, uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.deps import get_current_employee
from app.api.v1.routes import messages
from app.core.db import get_db_session
from app.domain.enums import ConversationStatus, EmployeeRole, SenderType
from app.infra.realtime.channels import conversation_channel
from app.infra.realtime.hub import RoomRegistry
from app.services.access_control import EmployeePrincipal
from app.services.errors import StoreUnavailableError
from app.services.message_relay import MessageRelay
from test_realtime_session import FakeState, FakeWebSocket


def build_client(
    state: FakeState,
    principal: EmployeePrincipal,
    relay: MessageRelay | None = None,
) -> tuple[TestClient, RoomRegistry]:
    registry = RoomRegistry()
    app = FastAPI()
    app.include_router(messages.router, prefix="/api/v1")
    app.state.room_registry = registry
    app.state.message_relay = relay or MessageRelay(state.store_factory(), registry)
    app.dependency_overrides[get_current_employee] = lambda: principal
    return TestClient(app), registry


def agent(company_id: UUID, role: EmployeeRole = EmployeeRole.AGENT) -> EmployeePrincipal:
    return EmployeePrincipal(employee_id=uuid4(), company_id=company_id, role=role)


def test_employee_send_returns_created_message_and_broadcasts() -> None:
    state = FakeState()
    principal = agent(state.company_id)
    client, registry = build_client(state, principal)
    watcher = FakeWebSocket()
    asyncio.run(registry.subscribe(conversation_channel(state.conversation.id), watcher))

    response = client.post(
        "/api/v1/messages",
        json={"conversationId": str(state.conversation.id), "content": "hi"},
    )

    assert response.status_code == 201
    body = response.json()["message"]
    assert body["conversationId"] == str(state.conversation.id)
    assert body["content"] == "hi"
    assert body["senderType"] == SenderType.EMPLOYEE.value
    assert body["senderId"] == str(principal.employee_id)
    assert body["id"] and body["createdAt"]
    assert watcher.sent[0]["payload"] == body


@pytest.mark.parametrize(
    ("mutate", "expected_status", "expected_code"),
    [
        (lambda state: None, 400, "InvalidMessage"),
        (lambda state: state.conversations.clear(), 404, "ConversationNotFound"),
        (
            lambda state: setattr(state.conversation, "status", ConversationStatus.CLOSED),
            409,
            "ConversationClosed",
        ),
        (
            lambda state: setattr(state.conversation, "employee_id", uuid4()),
            403,
            "NotAssigned",
        ),
    ],
)
def test_send_errors_map_to_status_codes(mutate, expected_status: int, expected_code: str) -> None:
    state = FakeState()
    mutate(state)
    client, _ = build_client(state, agent(state.company_id))
    content = "" if expected_code == "InvalidMessage" else "hello"

    response = client.post(
        "/api/v1/messages",
        json={"conversationId": str(state.conversation.id), "content": content},
    )

    assert response.status_code == expected_status
    assert response.json()["detail"]["code"] == expected_code


def test_other_tenant_employee_is_forbidden() -> None:
    state = FakeState()
    client, _ = build_client(state, agent(uuid4(), EmployeeRole.ADMIN))

    response = client.post(
        "/api/v1/messages",
        json={"conversationId": str(state.conversation.id), "content": "hello"},
    )

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "Forbidden"


def test_store_outage_maps_to_service_unavailable() -> None:
    state = FakeState()

    class UnavailableRelay:
        async def send(self, command):
            raise StoreUnavailableError()

    client, _ = build_client(state, agent(state.company_id), relay=UnavailableRelay())

    response = client.post(
        "/api/v1/messages",
        json={"conversationId": str(state.conversation.id), "content": "hello"},
    )

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "StoreUnavailable"


def test_missing_credentials_are_rejected() -> None:
    state = FakeState()
    app = FastAPI()
    app.include_router(messages.router, prefix="/api/v1")
    app.state.message_relay = MessageRelay(state.store_factory(), RoomRegistry())
    app.dependency_overrides[get_db_session] = lambda: None

    response = TestClient(app).post(
        "/api/v1/messages",
        json={"conversationId": str(state.conversation.id), "content": "hi"},
    )

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "Unauthorized"
