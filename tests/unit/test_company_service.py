from dataclasses import dataclass, field
from uuid import UUID, uuid4

import pytest

from app.core.security import verify_password
from app.domain.enums import EmployeeRole
from app.services.company_service import CompanyService, generate_slug
from app.services.errors import EmailAlreadyRegisteredError


class DummySession:
    async def commit(self) -> None:
        return None


@dataclass(slots=True)
class FakeCompany:
    name: str
    slug: str
    id: UUID = field(default_factory=uuid4)


@dataclass(slots=True)
class FakeEmployee:
    company_id: UUID
    name: str
    email: str
    password_hash: str
    role: EmployeeRole
    id: UUID = field(default_factory=uuid4)


class FakeCompanyRepository:
    def __init__(self) -> None:
        self.companies: dict[str, FakeCompany] = {}

    async def get_by_slug(self, slug: str) -> FakeCompany | None:
        return self.companies.get(slug)

    async def create(self, name: str, slug: str) -> FakeCompany:
        company = FakeCompany(name=name, slug=slug)
        self.companies[slug] = company
        return company


class FakeEmployeeRepository:
    def __init__(self) -> None:
        self.employees: dict[str, FakeEmployee] = {}

    async def get_by_email(self, email: str) -> FakeEmployee | None:
        return self.employees.get(email.lower())

    async def create(self, **kwargs) -> FakeEmployee:
        employee = FakeEmployee(**kwargs)
        self.employees[employee.email] = employee
        return employee


def build_service() -> CompanyService:
    return CompanyService(
        session=DummySession(),
        companies=FakeCompanyRepository(),
        employees=FakeEmployeeRepository(),
    )


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Acme Support", "acme-support"),
        ("  Café  Crème!! ", "cafe-creme"),
        ("***", "company"),
    ],
)
def test_generate_slug(name: str, expected: str) -> None:
    assert generate_slug(name) == expected


@pytest.mark.asyncio
async def test_register_company_creates_admin_and_unique_slugs() -> None:
    service = build_service()

    first = await service.register_company("Acme Support", "Ada", "Ada@Acme.test", "secret1")
    second = await service.register_company("Acme Support", "Bob", "bob@acme.test", "secret2")
    third = await service.register_company("Acme Support", "Cy", "cy@acme.test", "secret3")

    assert [first.company.slug, second.company.slug, third.company.slug] == [
        "acme-support",
        "acme-support-1",
        "acme-support-2",
    ]
    assert first.admin.role == EmployeeRole.ADMIN
    assert first.admin.email == "ada@acme.test"
    assert first.admin.company_id == first.company.id
    assert verify_password("secret1", first.admin.password_hash)


@pytest.mark.asyncio
async def test_register_company_rejects_duplicate_email() -> None:
    service = build_service()
    await service.register_company("Acme", "Ada", "ada@acme.test", "secret1")

    with pytest.raises(EmailAlreadyRegisteredError):
        await service.register_company("Other", "Ada", "ADA@acme.test", "secret1")
