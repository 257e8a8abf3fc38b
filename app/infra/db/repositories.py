from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.domain.enums import ConversationStatus, EmployeeRole, SenderType
from app.infra.db.models import Company, Conversation, Customer, Employee, Message


class CompanyRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, company_id: UUID) -> Company | None:
        return await self.session.get(Company, company_id)

    async def get_by_slug(self, slug: str) -> Company | None:
        stmt: Select[tuple[Company]] = select(Company).where(Company.slug == slug).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, name: str, slug: str) -> Company:
        company = Company(name=name, slug=slug)
        self.session.add(company)
        await self.session.flush()
        await self.session.refresh(company)
        return company


class EmployeeRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, employee_id: UUID) -> Employee | None:
        return await self.session.get(Employee, employee_id)

    async def get_by_email(self, email: str) -> Employee | None:
        stmt: Select[tuple[Employee]] = (
            select(Employee).where(func.lower(Employee.email) == email.strip().lower()).limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_company(self, company_id: UUID) -> list[Employee]:
        stmt: Select[tuple[Employee]] = (
            select(Employee)
            .where(Employee.company_id == company_id)
            .order_by(Employee.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(
        self,
        company_id: UUID,
        name: str,
        email: str,
        password_hash: str,
        role: EmployeeRole = EmployeeRole.AGENT,
    ) -> Employee:
        employee = Employee(
            company_id=company_id,
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
        )
        self.session.add(employee)
        await self.session.flush()
        await self.session.refresh(employee)
        return employee

    async def delete(self, employee: Employee) -> None:
        await self.session.delete(employee)
        await self.session.flush()


class CustomerRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, customer_id: UUID) -> Customer | None:
        return await self.session.get(Customer, customer_id)

    async def get_by_id_for_update(self, customer_id: UUID) -> Customer | None:
        # Holds the row lock until commit so a concurrent block cannot interleave.
        stmt: Select[tuple[Customer]] = (
            select(Customer)
            .where(Customer.id == customer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_device(self, company_id: UUID, device_id: str) -> Customer | None:
        stmt: Select[tuple[Customer]] = (
            select(Customer)
            .where(Customer.company_id == company_id, Customer.device_id == device_id)
            .order_by(Customer.created_at.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_email(self, company_id: UUID, email: str) -> Customer | None:
        stmt: Select[tuple[Customer]] = (
            select(Customer)
            .where(Customer.company_id == company_id, Customer.email == email)
            .order_by(Customer.created_at.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_company(self, company_id: UUID) -> list[Customer]:
        stmt: Select[tuple[Customer]] = (
            select(Customer)
            .where(Customer.company_id == company_id)
            .order_by(Customer.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(
        self,
        company_id: UUID,
        name: str,
        email: str | None = None,
        device_id: str | None = None,
    ) -> Customer:
        customer = Customer(
            company_id=company_id,
            name=name,
            email=email,
            device_id=device_id,
            blocked=False,
        )
        self.session.add(customer)
        await self.session.flush()
        await self.session.refresh(customer)
        return customer

    async def set_blocked(self, customer: Customer, blocked: bool) -> None:
        customer.blocked = blocked
        await self.session.flush()

    async def count_by_company(
        self,
        company_id: UUID,
        *,
        blocked: bool | None = None,
        created_since: datetime | None = None,
    ) -> int:
        stmt = select(func.count(Customer.id)).where(Customer.company_id == company_id)
        if blocked is not None:
            stmt = stmt.where(Customer.blocked.is_(blocked))
        if created_since is not None:
            stmt = stmt.where(Customer.created_at >= created_since)
        result = await self.session.execute(stmt)
        return int(result.scalar_one() or 0)


class ConversationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        return await self.session.get(Conversation, conversation_id)

    async def get_by_id_for_update(self, conversation_id: UUID) -> Conversation | None:
        stmt: Select[tuple[Conversation]] = (
            select(Conversation)
            .where(Conversation.id == conversation_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_with_participants(self, conversation_id: UUID) -> Conversation | None:
        stmt: Select[tuple[Conversation]] = (
            select(Conversation)
            .where(Conversation.id == conversation_id)
            .options(selectinload(Conversation.customer), selectinload(Conversation.employee))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, company_id: UUID, customer_id: UUID) -> Conversation:
        conversation = Conversation(
            company_id=company_id,
            customer_id=customer_id,
            status=ConversationStatus.OPEN,
        )
        self.session.add(conversation)
        await self.session.flush()
        await self.session.refresh(conversation)
        return conversation

    async def touch(self, conversation: Conversation) -> None:
        conversation.updated_at = datetime.now(UTC)
        await self.session.flush()

    async def list_for_company(
        self,
        company_id: UUID,
        status_filter: ConversationStatus | None = None,
        assigned: bool | None = None,
        limit: int = 200,
    ) -> list[Conversation]:
        stmt: Select[tuple[Conversation]] = (
            select(Conversation)
            .where(Conversation.company_id == company_id)
            .options(selectinload(Conversation.customer), selectinload(Conversation.employee))
        )
        if status_filter is not None:
            stmt = stmt.where(Conversation.status == status_filter)
        if assigned is True:
            stmt = stmt.where(Conversation.employee_id.is_not(None))
        elif assigned is False:
            stmt = stmt.where(Conversation.employee_id.is_(None))
        stmt = stmt.order_by(Conversation.updated_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_customer(self, company_id: UUID, customer_id: UUID) -> list[Conversation]:
        stmt: Select[tuple[Conversation]] = (
            select(Conversation)
            .where(
                Conversation.company_id == company_id,
                Conversation.customer_id == customer_id,
            )
            .options(selectinload(Conversation.customer), selectinload(Conversation.employee))
            .order_by(Conversation.updated_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_customer(self, customer_id: UUID) -> int:
        result = await self.session.execute(
            delete(Conversation).where(Conversation.customer_id == customer_id)
        )
        return int(result.rowcount or 0)

    async def count_by_company(
        self,
        company_id: UUID,
        statuses: Sequence[ConversationStatus] | None = None,
    ) -> int:
        stmt = select(func.count(Conversation.id)).where(Conversation.company_id == company_id)
        if statuses is not None:
            stmt = stmt.where(Conversation.status.in_(list(statuses)))
        result = await self.session.execute(stmt)
        return int(result.scalar_one() or 0)


class MessageRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        conversation_id: UUID,
        sender_type: SenderType,
        content: str,
        image_url: str | None = None,
        sender_id: UUID | None = None,
    ) -> Message:
        message = Message(
            conversation_id=conversation_id,
            sender_type=sender_type,
            sender_id=sender_id,
            content=content,
            image_url=image_url,
        )
        self.session.add(message)
        await self.session.flush()
        await self.session.refresh(message)
        return message

    async def list_by_conversation(self, conversation_id: UUID) -> list[Message]:
        stmt: Select[tuple[Message]] = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def latest_by_conversation(
        self, conversation_ids: Sequence[UUID]
    ) -> dict[UUID, Message]:
        if not conversation_ids:
            return {}

        ranked = (
            select(
                Message.id.label("message_id"),
                func.row_number()
                .over(
                    partition_by=Message.conversation_id,
                    order_by=(Message.created_at.desc(), Message.id.desc()),
                )
                .label("position"),
            )
            .where(Message.conversation_id.in_(list(conversation_ids)))
            .subquery()
        )
        stmt: Select[tuple[Message]] = select(Message).join(
            ranked, (ranked.c.message_id == Message.id) & (ranked.c.position == 1)
        )
        result = await self.session.execute(stmt)
        return {message.conversation_id: message for message in result.scalars().all()}

    async def count_by_company(self, company_id: UUID) -> int:
        stmt = (
            select(func.count(Message.id))
            .join(Conversation, Conversation.id == Message.conversation_id)
            .where(Conversation.company_id == company_id)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one() or 0)
