from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password
from app.domain.enums import EmployeeRole
from app.infra.db.models import Employee
from app.infra.db.repositories import EmployeeRepository
from app.services.access_control import (
    EmployeePrincipal,
    ensure_admin,
    ensure_company_access,
)
from app.services.errors import (
    EmailAlreadyRegisteredError,
    EmployeeNotFoundError,
    SelfDeletionError,
)


class EmployeeService:
    def __init__(
        self,
        session: AsyncSession,
        employees: EmployeeRepository | None = None,
    ) -> None:
        self.session = session
        self.employees = employees or EmployeeRepository(session)

    async def list_employees(self, principal: EmployeePrincipal) -> list[Employee]:
        return await self.employees.list_by_company(principal.company_id)

    async def create_employee(
        self,
        principal: EmployeePrincipal,
        name: str,
        email: str,
        password: str,
        role: EmployeeRole,
    ) -> Employee:
        ensure_admin(principal)

        normalized_email = email.strip().lower()
        if await self.employees.get_by_email(normalized_email) is not None:
            raise EmailAlreadyRegisteredError(normalized_email)

        employee = await self.employees.create(
            company_id=principal.company_id,
            name=name.strip(),
            email=normalized_email,
            password_hash=hash_password(password),
            role=role,
        )
        await self.session.commit()
        await self.session.refresh(employee)
        return employee

    async def delete_employee(self, principal: EmployeePrincipal, employee_id: UUID) -> None:
        ensure_admin(principal)

        employee = await self.employees.get_by_id(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        ensure_company_access(principal.company_id, employee.company_id)
        if employee.id == principal.employee_id:
            raise SelfDeletionError()

        await self.employees.delete(employee)
        await self.session.commit()
