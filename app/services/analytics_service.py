from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.enums import ConversationStatus
from app.infra.db.repositories import (
    ConversationRepository,
    CustomerRepository,
    MessageRepository,
)
from app.services.access_control import EmployeePrincipal

RECENT_CUSTOMER_WINDOW = timedelta(days=7)
ACTIVE_STATUSES = (ConversationStatus.OPEN, ConversationStatus.ASSIGNED)


@dataclass(slots=True)
class AnalyticsSummary:
    total_customers: int
    total_conversations: int
    active_conversations: int
    closed_conversations: int
    blocked_customers: int
    total_messages: int
    recent_customers: int


class AnalyticsService:
    def __init__(
        self,
        session: AsyncSession,
        customers: CustomerRepository | None = None,
        conversations: ConversationRepository | None = None,
        messages: MessageRepository | None = None,
    ) -> None:
        self.session = session
        self.customers = customers or CustomerRepository(session)
        self.conversations = conversations or ConversationRepository(session)
        self.messages = messages or MessageRepository(session)

    async def get_summary(self, principal: EmployeePrincipal) -> AnalyticsSummary:
        company_id = principal.company_id
        recent_since = datetime.now(UTC) - RECENT_CUSTOMER_WINDOW

        return AnalyticsSummary(
            total_customers=await self.customers.count_by_company(company_id),
            total_conversations=await self.conversations.count_by_company(company_id),
            active_conversations=await self.conversations.count_by_company(
                company_id, statuses=ACTIVE_STATUSES
            ),
            closed_conversations=await self.conversations.count_by_company(
                company_id, statuses=(ConversationStatus.CLOSED,)
            ),
            blocked_customers=await self.customers.count_by_company(
                company_id, blocked=True
            ),
            total_messages=await self.messages.count_by_company(company_id),
            recent_customers=await self.customers.count_by_company(
                company_id, created_since=recent_since
            ),
        )
