from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_employee, get_room_registry
from app.api.errors import raise_for_service_error
from app.core.db import get_db_session
from app.domain.enums import ConversationStatus
from app.domain.exceptions import InvalidConversationTransition
from app.schemas.conversation import (
    AssignConversationRequest,
    ConversationDetailEnvelope,
    ConversationDetailResponse,
    ConversationEnvelope,
    ConversationListResponse,
    ConversationResponse,
    ConversationSummaryResponse,
)
from app.schemas.message import MessageResponse
from app.services.access_control import EmployeePrincipal
from app.services.conversation_service import (
    ConversationDetail,
    ConversationService,
    ConversationSummary,
)
from app.services.errors import (
    ConversationNotFoundError,
    InvalidAssigneeError,
    TenantAccessDeniedError,
)

router = APIRouter()


async def get_conversation_service(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
) -> ConversationService:
    return ConversationService(session=session, realtime=get_room_registry(request))


def to_summary_response(summary: ConversationSummary) -> ConversationSummaryResponse:
    conversation = summary.conversation
    return ConversationSummaryResponse.model_validate(
        {
            **ConversationResponse.model_validate(conversation).model_dump(),
            "customer": conversation.customer,
            "employee": conversation.employee,
            "latest_message": (
                MessageResponse.model_validate(summary.latest_message)
                if summary.latest_message is not None
                else None
            ),
        }
    )


def to_detail_response(detail: ConversationDetail) -> ConversationDetailResponse:
    conversation = detail.conversation
    return ConversationDetailResponse.model_validate(
        {
            **ConversationResponse.model_validate(conversation).model_dump(),
            "customer": conversation.customer,
            "employee": conversation.employee,
            "messages": [
                MessageResponse.model_validate(message) for message in detail.messages
            ],
        }
    )


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    status_filter: ConversationStatus | None = Query(default=None, alias="status"),
    assigned: bool | None = Query(default=None),
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationListResponse:
    summaries = await service.list_conversations(
        principal,
        status_filter=status_filter,
        assigned=assigned,
    )
    return ConversationListResponse(
        conversations=[to_summary_response(summary) for summary in summaries]
    )


@router.get("/{conversation_id}", response_model=ConversationDetailEnvelope)
async def get_conversation(
    conversation_id: UUID,
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationDetailEnvelope:
    try:
        detail = await service.get_conversation(principal, conversation_id)
    except (ConversationNotFoundError, TenantAccessDeniedError) as exc:
        raise_for_service_error(exc)

    return ConversationDetailEnvelope(conversation=to_detail_response(detail))


@router.patch("/{conversation_id}", response_model=ConversationEnvelope)
async def assign_conversation(
    conversation_id: UUID,
    payload: AssignConversationRequest,
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationEnvelope:
    try:
        conversation = await service.assign(principal, conversation_id, payload.employee_id)
    except (
        ConversationNotFoundError,
        InvalidAssigneeError,
        InvalidConversationTransition,
        TenantAccessDeniedError,
    ) as exc:
        raise_for_service_error(exc)

    return ConversationEnvelope(conversation=ConversationResponse.model_validate(conversation))


@router.post("/{conversation_id}/close", response_model=ConversationEnvelope)
async def close_conversation(
    conversation_id: UUID,
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationEnvelope:
    try:
        conversation = await service.close(principal, conversation_id)
    except (
        ConversationNotFoundError,
        InvalidConversationTransition,
        TenantAccessDeniedError,
    ) as exc:
        raise_for_service_error(exc)

    return ConversationEnvelope(conversation=ConversationResponse.model_validate(conversation))
