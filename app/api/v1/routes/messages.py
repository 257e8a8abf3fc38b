from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_employee, get_message_relay
from app.api.errors import raise_for_service_error
from app.domain.exceptions import InvalidConversationTransition
from app.schemas.message import (
    MessageEnvelopeResponse,
    MessageResponse,
    SendMessageRequest,
)
from app.services.access_control import EmployeePrincipal
from app.services.errors import (
    ConversationAccessDeniedError,
    ConversationClosedError,
    ConversationNotFoundError,
    InvalidMessageError,
    NotAssignedError,
    StoreUnavailableError,
    TenantAccessDeniedError,
)
from app.services.message_relay import MessageRelay, SendMessageCommand

router = APIRouter()


@router.post(
    "/messages",
    response_model=MessageEnvelopeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    payload: SendMessageRequest,
    principal: EmployeePrincipal = Depends(get_current_employee),
    relay: MessageRelay = Depends(get_message_relay),
) -> MessageEnvelopeResponse:
    try:
        result = await relay.send(
            SendMessageCommand(
                conversation_id=payload.conversation_id,
                sender=principal.as_sender(),
                content=payload.content,
                image_url=payload.image_url,
            )
        )
    except (
        ConversationAccessDeniedError,
        ConversationClosedError,
        ConversationNotFoundError,
        InvalidConversationTransition,
        InvalidMessageError,
        NotAssignedError,
        StoreUnavailableError,
        TenantAccessDeniedError,
    ) as exc:
        raise_for_service_error(exc)

    return MessageEnvelopeResponse(message=MessageResponse.model_validate(result.message))
