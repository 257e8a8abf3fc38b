from datetime import datetime
from uuid import UUID

from app.domain.enums import ConversationStatus
from app.schemas.common import CamelModel
from app.schemas.customer import CustomerBriefResponse
from app.schemas.employee import EmployeeBriefResponse
from app.schemas.message import MessageResponse


class ConversationResponse(CamelModel):
    id: UUID
    company_id: UUID
    customer_id: UUID
    employee_id: UUID | None
    status: ConversationStatus
    closed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ConversationSummaryResponse(ConversationResponse):
    customer: CustomerBriefResponse
    employee: EmployeeBriefResponse | None
    latest_message: MessageResponse | None


class ConversationListResponse(CamelModel):
    conversations: list[ConversationSummaryResponse]


class ConversationDetailResponse(ConversationResponse):
    customer: CustomerBriefResponse
    employee: EmployeeBriefResponse | None
    messages: list[MessageResponse]


class ConversationDetailEnvelope(CamelModel):
    conversation: ConversationDetailResponse


class ConversationEnvelope(CamelModel):
    conversation: ConversationResponse


class AssignConversationRequest(CamelModel):
    employee_id: UUID | None
