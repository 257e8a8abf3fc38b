from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_employee
from app.api.errors import raise_for_service_error
from app.core.db import get_db_session
from app.schemas.common import ActionResult
from app.schemas.customer import (
    BlockCustomerRequest,
    CustomerEnvelope,
    CustomerListResponse,
    CustomerResponse,
)
from app.services.access_control import EmployeePrincipal
from app.services.customer_service import CustomerService
from app.services.errors import (
    AdminRequiredError,
    CustomerNotFoundError,
    TenantAccessDeniedError,
)

router = APIRouter()


async def get_customer_service(
    session: AsyncSession = Depends(get_db_session),
) -> CustomerService:
    return CustomerService(session=session)


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: CustomerService = Depends(get_customer_service),
) -> CustomerListResponse:
    customers = await service.list_customers(principal)
    return CustomerListResponse(
        customers=[CustomerResponse.model_validate(customer) for customer in customers]
    )


@router.patch("/{customer_id}/block", response_model=CustomerEnvelope)
async def set_customer_blocked(
    customer_id: UUID,
    payload: BlockCustomerRequest,
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: CustomerService = Depends(get_customer_service),
) -> CustomerEnvelope:
    try:
        customer = await service.set_blocked(principal, customer_id, payload.blocked)
    except (AdminRequiredError, CustomerNotFoundError, TenantAccessDeniedError) as exc:
        raise_for_service_error(exc)

    return CustomerEnvelope(customer=CustomerResponse.model_validate(customer))


@router.delete("/{customer_id}/conversations", response_model=ActionResult)
async def delete_customer_history(
    customer_id: UUID,
    principal: EmployeePrincipal = Depends(get_current_employee),
    service: CustomerService = Depends(get_customer_service),
) -> ActionResult:
    try:
        deleted = await service.delete_history(principal, customer_id)
    except (AdminRequiredError, CustomerNotFoundError, TenantAccessDeniedError) as exc:
        raise_for_service_error(exc)

    return ActionResult(message=f"Deleted {deleted} conversation(s)")
