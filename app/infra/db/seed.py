from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password
from app.domain.enums import EmployeeRole
from app.infra.db.models import Company, Employee

DEMO_COMPANY: dict[str, str] = {
    "name": "Demo Support",
    "slug": "demo-support",
}

DEMO_EMPLOYEE_ACCOUNTS: list[dict[str, str | EmployeeRole]] = [
    {
        "name": "Demo Admin",
        "email": "admin@demo-support.test",
        "password": "Admin@123",
        "role": EmployeeRole.ADMIN,
    },
    {
        "name": "Demo Agent",
        "email": "agent@demo-support.test",
        "password": "AgentPass123!",
        "role": EmployeeRole.AGENT,
    },
]


async def seed_demo_company(session: AsyncSession) -> Company:
    result = await session.execute(select(Company).where(Company.slug == DEMO_COMPANY["slug"]))
    company = result.scalar_one_or_none()
    if company is not None:
        return company

    company = Company(name=DEMO_COMPANY["name"], slug=DEMO_COMPANY["slug"])
    session.add(company)
    await session.flush()
    return company


async def seed_demo_employees(session: AsyncSession, company: Company) -> int:
    existing_rows = await session.execute(select(Employee.email))
    existing_emails = {email.strip().lower() for email in existing_rows.scalars().all()}

    created = 0
    for item in DEMO_EMPLOYEE_ACCOUNTS:
        email = str(item["email"]).strip().lower()
        if email in existing_emails:
            continue

        session.add(
            Employee(
                company_id=company.id,
                name=str(item["name"]),
                email=email,
                password_hash=hash_password(str(item["password"])),
                role=EmployeeRole(item["role"]),
            )
        )
        created += 1

    if created:
        await session.flush()
    return created
