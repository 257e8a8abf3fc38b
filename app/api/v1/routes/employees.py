from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_employee
from app.api.errors import raise_for_service_error
from app.core.db import get_db_session
from app.schemas.common import ActionResult
from app.schemas.employee import (
    CreateEmployeeRequest,
    EmployeeEnvelope,
    EmployeeListResponse,
    EmployeeResponse,
)
from app.services.access_control import EmployeePrincipal
from app.services.employee_service import EmployeeService
from app.services.errors import (
    AdminRequiredError,
    EmailAlreadyRegisteredError,
    EmployeeNotFoundError,
    SelfDeletionError,
    TenantAccessDeniedError,
)

router = APIRouter()


async def get_employee_service(
    session: AsyncSession = Depends(get_db_session),
) -> EmployeeService:
    return EmployeeService(session=session)


@router.get("", response_model=EmployeeListResponse)
async def list_employees(
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeListResponse:
    employees = await service.list_employees(principal)
    return EmployeeListResponse(
        employees=[EmployeeResponse.model_validate(employee) for employee in employees]
    )


@router.post("", response_model=EmployeeEnvelope, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: CreateEmployeeRequest,
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeEnvelope:
    try:
        employee = await service.create_employee(
            principal,
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=payload.role,
        )
    except (AdminRequiredError, EmailAlreadyRegisteredError) as exc:
        raise_for_service_error(exc)

    return EmployeeEnvelope(employee=EmployeeResponse.model_validate(employee))


@router.delete("/{employee_id}", response_model=ActionResult)
async def delete_employee(
    employee_id: UUID,
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: EmployeeService = Depends(get_employee_service),
) -> ActionResult:
    try:
        await service.delete_employee(principal, employee_id)
    except (
        AdminRequiredError,
        EmployeeNotFoundError,
        SelfDeletionError,
        TenantAccessDeniedError,
    ) as exc:
        raise_for_service_error(exc)

    return ActionResult(message="Employee deleted")
