from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.security import (
    create_employee_access_token,
    decode_employee_access_token,
    verify_password,
)
from app.infra.db.models import Employee
from app.infra.db.repositories import EmployeeRepository
from app.services.access_control import EmployeePrincipal
from app.services.errors import AuthenticationError


@dataclass(slots=True)
class EmployeeLoginResult:
    access_token: str
    token_type: str
    expires_at: datetime
    employee: Employee


class AuthService:
    def __init__(
        self,
        session: AsyncSession,
        employees: EmployeeRepository | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.employees = employees or EmployeeRepository(session)
        self.settings = settings or get_settings()

    async def login(self, email: str, password: str) -> EmployeeLoginResult:
        normalized_email = email.strip().lower()
        if not normalized_email:
            raise AuthenticationError()

        employee = await self.employees.get_by_email(normalized_email)
        if employee is None:
            raise AuthenticationError()
        if not verify_password(password, employee.password_hash):
            raise AuthenticationError()

        token, expires_at = create_employee_access_token(
            employee_id=employee.id,
            company_id=employee.company_id,
            role=employee.role,
            secret=self.settings.employee_auth_secret,
            ttl_minutes=self.settings.employee_auth_token_ttl_minutes,
        )

        return EmployeeLoginResult(
            access_token=token,
            token_type="bearer",
            expires_at=expires_at,
            employee=employee,
        )

    async def authenticate(self, access_token: str) -> EmployeePrincipal:
        try:
            claims = decode_employee_access_token(
                access_token,
                self.settings.employee_auth_secret,
            )
        except ValueError as exc:
            raise AuthenticationError("Invalid or expired employee session") from exc

        employee = await self.employees.get_by_id(claims.employee_id)
        if employee is None or employee.company_id != claims.company_id:
            raise AuthenticationError("Invalid or expired employee session")

        # Role comes from the row so a demotion takes effect before token expiry.
        return EmployeePrincipal(
            employee_id=employee.id,
            company_id=employee.company_id,
            role=employee.role,
        )
