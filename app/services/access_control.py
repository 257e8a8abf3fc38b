from dataclasses import dataclass
from uuid import UUID

from app.domain.enums import EmployeeRole
from app.domain.senders import EmployeeSender
from app.services.errors import AdminRequiredError, TenantAccessDeniedError


@dataclass(frozen=True, slots=True)
class EmployeePrincipal:
    """An authenticated employee, already scoped to one company."""

    employee_id: UUID
    company_id: UUID
    role: EmployeeRole

    @property
    def is_admin(self) -> bool:
        return self.role == EmployeeRole.ADMIN

    def as_sender(self) -> EmployeeSender:
        return EmployeeSender(
            employee_id=self.employee_id,
            company_id=self.company_id,
            is_admin=self.is_admin,
        )


def ensure_company_access(company_id: UUID, resource_company_id: UUID) -> None:
    if company_id != resource_company_id:
        raise TenantAccessDeniedError()


def ensure_admin(principal: EmployeePrincipal) -> None:
    if not principal.is_admin:
        raise AdminRequiredError()
