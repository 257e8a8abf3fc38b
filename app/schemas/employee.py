from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from app.domain.enums import EmployeeRole
from app.schemas.common import CamelModel


class EmployeeBriefResponse(CamelModel):
    id: UUID
    name: str
    email: str


class EmployeeResponse(EmployeeBriefResponse):
    role: EmployeeRole
    created_at: datetime


class EmployeeListResponse(CamelModel):
    employees: list[EmployeeResponse]


class EmployeeEnvelope(CamelModel):
    employee: EmployeeResponse


class CreateEmployeeRequest(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: EmployeeRole = EmployeeRole.AGENT
