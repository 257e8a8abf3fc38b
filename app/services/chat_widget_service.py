"""Public chat widget: the unauthenticated, company-slug scoped customer side."""

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.infra.db.models import Company, Conversation, Customer, Message
from app.infra.db.repositories import (
    CompanyRepository,
    ConversationRepository,
    CustomerRepository,
    MessageRepository,
)
from app.services.conversation_service import ConversationDetail, ConversationSummary
from app.services.errors import (
    CompanyNotFoundError,
    ConversationAccessDeniedError,
    ConversationNotFoundError,
)


@dataclass(slots=True)
class WidgetBootstrap:
    company: Company
    customer: Customer | None = None
    conversations: list[ConversationSummary] = field(default_factory=list)


class ChatWidgetService:
    def __init__(
        self,
        session: AsyncSession,
        companies: CompanyRepository | None = None,
        customers: CustomerRepository | None = None,
        conversations: ConversationRepository | None = None,
        messages: MessageRepository | None = None,
    ) -> None:
        self.session = session
        self.companies = companies or CompanyRepository(session)
        self.customers = customers or CustomerRepository(session)
        self.conversations = conversations or ConversationRepository(session)
        self.messages = messages or MessageRepository(session)

    async def get_widget(self, slug: str, device_id: str | None = None) -> WidgetBootstrap:
        company = await self._get_company_or_raise(slug)
        if not device_id:
            return WidgetBootstrap(company=company)

        customer = await self.customers.find_by_device(company.id, device_id)
        if customer is None:
            return WidgetBootstrap(company=company)

        conversations = await self.conversations.list_for_customer(company.id, customer.id)
        latest = await self.messages.latest_by_conversation(
            [conversation.id for conversation in conversations]
        )
        return WidgetBootstrap(
            company=company,
            customer=customer,
            conversations=[
                ConversationSummary(
                    conversation=conversation,
                    latest_message=latest.get(conversation.id),
                )
                for conversation in conversations
            ],
        )

    async def start_conversation(
        self,
        slug: str,
        customer_name: str,
        customer_email: str | None = None,
        device_id: str | None = None,
    ) -> Conversation:
        company = await self._get_company_or_raise(slug)
        customer = await self._resolve_customer(
            company,
            customer_name.strip(),
            customer_email,
            device_id,
        )

        conversation = await self.conversations.create(company.id, customer.id)
        await self.session.commit()
        return await self._reload(conversation.id)

    async def get_history(
        self,
        slug: str,
        conversation_id: UUID,
        device_id: str | None = None,
    ) -> ConversationDetail:
        company = await self._get_company_or_raise(slug)
        conversation = await self.conversations.get_with_participants(conversation_id)
        # Another tenant's conversation is reported as missing, not forbidden.
        if conversation is None or conversation.company_id != company.id:
            raise ConversationNotFoundError(conversation_id)
        if device_id and conversation.customer.device_id != device_id:
            raise ConversationAccessDeniedError(conversation_id)

        messages = await self.messages.list_by_conversation(conversation.id)
        return ConversationDetail(conversation=conversation, messages=messages)

    async def _resolve_customer(
        self,
        company: Company,
        customer_name: str,
        customer_email: str | None,
        device_id: str | None,
    ) -> Customer:
        customer: Customer | None = None
        if device_id:
            customer = await self.customers.find_by_device(company.id, device_id)
        if customer is None and customer_email:
            customer = await self.customers.find_by_email(company.id, customer_email)

        if customer is None:
            return await self.customers.create(
                company_id=company.id,
                name=customer_name,
                email=customer_email,
                device_id=device_id,
            )

        if customer_name and customer_name != customer.name:
            customer.name = customer_name
        if customer_email and customer_email != customer.email:
            customer.email = customer_email
        if device_id and not customer.device_id:
            customer.device_id = device_id
        await self.session.flush()
        return customer

    async def _get_company_or_raise(self, slug: str) -> Company:
        company = await self.companies.get_by_slug(slug)
        if company is None:
            raise CompanyNotFoundError(slug)
        return company

    async def _reload(self, conversation_id: UUID) -> Conversation:
        conversation = await self.conversations.get_with_participants(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation
