from pydantic import EmailStr, Field

from app.schemas.auth import CompanyResponse
from app.schemas.common import CamelModel
from app.schemas.conversation import (
    ConversationResponse,
    ConversationSummaryResponse,
)
from app.schemas.customer import CustomerBriefResponse


class WidgetResponse(CamelModel):
    company: CompanyResponse
    customer: CustomerBriefResponse | None = None
    conversations: list[ConversationSummaryResponse] | None = None


class StartConversationRequest(CamelModel):
    customer_name: str = Field(min_length=1, max_length=120)
    customer_email: EmailStr | None = None
    device_id: str | None = Field(default=None, min_length=1, max_length=120)


class StartedConversationResponse(ConversationResponse):
    customer: CustomerBriefResponse


class StartConversationEnvelope(CamelModel):
    conversation: StartedConversationResponse
