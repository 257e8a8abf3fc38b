from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.errors import raise_for_service_error
from app.api.v1.routes.conversations import to_detail_response, to_summary_response
from app.core.db import get_db_session
from app.schemas.auth import CompanyResponse
from app.schemas.chat_widget import (
    StartConversationEnvelope,
    StartConversationRequest,
    StartedConversationResponse,
    WidgetResponse,
)
from app.schemas.conversation import ConversationDetailEnvelope, ConversationResponse
from app.schemas.customer import CustomerBriefResponse
from app.services.chat_widget_service import ChatWidgetService
from app.services.errors import (
    CompanyNotFoundError,
    ConversationAccessDeniedError,
    ConversationNotFoundError,
)

router = APIRouter()


async def get_chat_widget_service(
    session: AsyncSession = Depends(get_db_session),
) -> ChatWidgetService:
    return ChatWidgetService(session=session)


@router.get("/{slug}", response_model=WidgetResponse)
async def get_widget(
    slug: str,
    device_id: str | None = Query(default=None, alias="deviceId"),
    service: ChatWidgetService = Depends(get_chat_widget_service),
) -> WidgetResponse:
    try:
        widget = await service.get_widget(slug, device_id)
    except CompanyNotFoundError as exc:
        raise_for_service_error(exc)

    if widget.customer is None:
        return WidgetResponse(company=CompanyResponse.model_validate(widget.company))

    return WidgetResponse(
        company=CompanyResponse.model_validate(widget.company),
        customer=CustomerBriefResponse.model_validate(widget.customer),
        conversations=[to_summary_response(summary) for summary in widget.conversations],
    )


@router.post(
    "/{slug}/conversations",
    response_model=StartConversationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def start_conversation(
    slug: str,
    payload: StartConversationRequest,
    service: ChatWidgetService = Depends(get_chat_widget_service),
) -> StartConversationEnvelope:
    try:
        conversation = await service.start_conversation(
            slug,
            customer_name=payload.customer_name,
            customer_email=payload.customer_email,
            device_id=payload.device_id,
        )
    except CompanyNotFoundError as exc:
        raise_for_service_error(exc)

    return StartConversationEnvelope(
        conversation=StartedConversationResponse.model_validate(
            {
                **ConversationResponse.model_validate(conversation).model_dump(),
                "customer": conversation.customer,
            }
        )
    )


@router.get("/{slug}/conversations/{conversation_id}", response_model=ConversationDetailEnvelope)
async def get_conversation_history(
    slug: str,
    conversation_id: UUID,
    device_id: str | None = Query(default=None, alias="deviceId"),
    service: ChatWidgetService = Depends(get_chat_widget_service),
) -> ConversationDetailEnvelope:
    try:
        detail = await service.get_history(slug, conversation_id, device_id)
    except (
        CompanyNotFoundError,
        ConversationAccessDeniedError,
        ConversationNotFoundError,
    ) as exc:
        raise_for_service_error(exc)

    return ConversationDetailEnvelope(conversation=to_detail_response(detail))
