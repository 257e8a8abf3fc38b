from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from app.schemas.common import CamelModel
from app.schemas.employee import EmployeeResponse


class CompanyResponse(CamelModel):
    id: UUID
    name: str
    slug: str


class RegisterCompanyRequest(CamelModel):
    company_name: str = Field(min_length=1, max_length=200)
    admin_name: str = Field(min_length=1, max_length=120)
    admin_email: EmailStr
    admin_password: str = Field(min_length=6, max_length=128)


class RegisterCompanyResponse(CamelModel):
    success: bool = True
    company: CompanyResponse


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class EmployeeSessionResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    employee: EmployeeResponse
