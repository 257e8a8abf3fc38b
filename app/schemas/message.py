from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from app.domain.enums import SenderType
from app.schemas.common import CamelModel

MAX_CONTENT_LENGTH = 4000
MAX_IMAGE_URL_LENGTH = 2048


class SendMessageRequest(CamelModel):
    conversation_id: UUID
    content: str | None = Field(default=None, max_length=MAX_CONTENT_LENGTH)
    image_url: str | None = Field(default=None, max_length=MAX_IMAGE_URL_LENGTH)


class MessageResponse(CamelModel):
    id: UUID
    conversation_id: UUID
    content: str
    image_url: str | None
    sender_type: SenderType
    sender_id: UUID | None
    created_at: datetime


class MessageEnvelopeResponse(CamelModel):
    message: MessageResponse


def message_payload(message: Any) -> dict[str, Any]:
    """Wire shape shared by the REST reply and the websocket broadcast."""

    return MessageResponse.model_validate(message).model_dump(mode="json", by_alias=True)
