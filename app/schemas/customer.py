from datetime import datetime
from uuid import UUID

from app.schemas.common import CamelModel


class CustomerBriefResponse(CamelModel):
    id: UUID
    name: str
    email: str | None
    blocked: bool


class CustomerResponse(CustomerBriefResponse):
    created_at: datetime


class CustomerListResponse(CamelModel):
    customers: list[CustomerResponse]


class CustomerEnvelope(CamelModel):
    customer: CustomerResponse


class BlockCustomerRequest(CamelModel):
    blocked: bool
