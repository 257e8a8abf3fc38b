from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.errors import raise_for_service_error
from app.core.db import get_db_session
from app.schemas.auth import (
    CompanyResponse,
    EmployeeSessionResponse,
    LoginRequest,
    RegisterCompanyRequest,
    RegisterCompanyResponse,
)
from app.schemas.employee import EmployeeResponse
from app.services.auth_service import AuthService
from app.services.company_service import CompanyService
from app.services.errors import AuthenticationError, EmailAlreadyRegisteredError

router = APIRouter()


@router.post(
    "/companies/register",
    response_model=RegisterCompanyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_company(
    payload: RegisterCompanyRequest,
    session: AsyncSession = Depends(get_db_session),
) -> RegisterCompanyResponse:
    try:
        registration = await CompanyService(session).register_company(
            company_name=payload.company_name,
            admin_name=payload.admin_name,
            admin_email=payload.admin_email,
            admin_password=payload.admin_password,
        )
    except EmailAlreadyRegisteredError as exc:
        raise_for_service_error(exc)

    return RegisterCompanyResponse(
        company=CompanyResponse.model_validate(registration.company)
    )


@router.post("/auth/login", response_model=EmployeeSessionResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
) -> EmployeeSessionResponse:
    try:
        result = await AuthService(session).login(payload.email, payload.password)
    except AuthenticationError as exc:
        raise_for_service_error(exc)

    return EmployeeSessionResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_at=result.expires_at,
        employee=EmployeeResponse.model_validate(result.employee),
    )
