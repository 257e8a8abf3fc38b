from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.infra.db.models import Customer
from app.infra.db.repositories import ConversationRepository, CustomerRepository
from app.services.access_control import (
    EmployeePrincipal,
    ensure_admin,
    ensure_company_access,
)
from app.services.errors import CustomerNotFoundError


class CustomerService:
    def __init__(
        self,
        session: AsyncSession,
        customers: CustomerRepository | None = None,
        conversations: ConversationRepository | None = None,
    ) -> None:
        self.session = session
        self.customers = customers or CustomerRepository(session)
        self.conversations = conversations or ConversationRepository(session)

    async def list_customers(self, principal: EmployeePrincipal) -> list[Customer]:
        return await self.customers.list_by_company(principal.company_id)

    async def set_blocked(
        self,
        principal: EmployeePrincipal,
        customer_id: UUID,
        blocked: bool,
    ) -> Customer:
        # Same row lock the message relay takes, so a block and an in-flight
        # customer send are applied one after the other.
        customer = await self.customers.get_by_id_for_update(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        ensure_company_access(principal.company_id, customer.company_id)
        ensure_admin(principal)

        await self.customers.set_blocked(customer, blocked)
        await self.session.commit()
        await self.session.refresh(customer)
        return customer

    async def delete_history(self, principal: EmployeePrincipal, customer_id: UUID) -> int:
        customer = await self.customers.get_by_id(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        ensure_company_access(principal.company_id, customer.company_id)
        ensure_admin(principal)

        deleted = await self.conversations.delete_for_customer(customer.id)
        await self.session.commit()
        return deleted
