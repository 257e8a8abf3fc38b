import re
import unicodedata
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password
from app.domain.enums import EmployeeRole
from app.infra.db.models import Company, Employee
from app.infra.db.repositories import CompanyRepository, EmployeeRepository
from app.services.errors import EmailAlreadyRegisteredError

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def generate_slug(name: str) -> str:
    normalized = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    slug = _NON_SLUG_CHARS.sub("-", normalized.lower()).strip("-")
    return slug or "company"


@dataclass(slots=True)
class CompanyRegistration:
    company: Company
    admin: Employee


class CompanyService:
    def __init__(
        self,
        session: AsyncSession,
        companies: CompanyRepository | None = None,
        employees: EmployeeRepository | None = None,
    ) -> None:
        self.session = session
        self.companies = companies or CompanyRepository(session)
        self.employees = employees or EmployeeRepository(session)

    async def register_company(
        self,
        company_name: str,
        admin_name: str,
        admin_email: str,
        admin_password: str,
    ) -> CompanyRegistration:
        normalized_email = admin_email.strip().lower()
        if await self.employees.get_by_email(normalized_email) is not None:
            raise EmailAlreadyRegisteredError(normalized_email)

        slug = await self._unique_slug(company_name)
        company = await self.companies.create(name=company_name.strip(), slug=slug)
        admin = await self.employees.create(
            company_id=company.id,
            name=admin_name.strip(),
            email=normalized_email,
            password_hash=hash_password(admin_password),
            role=EmployeeRole.ADMIN,
        )
        await self.session.commit()
        return CompanyRegistration(company=company, admin=admin)

    async def _unique_slug(self, company_name: str) -> str:
        base_slug = generate_slug(company_name)
        slug = base_slug
        counter = 1
        while await self.companies.get_by_slug(slug) is not None:
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug
