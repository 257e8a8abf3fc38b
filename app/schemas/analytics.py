from app.schemas.common import CamelModel


class AnalyticsResponse(CamelModel):
    total_customers: int
    total_conversations: int
    active_conversations: int
    closed_conversations: int
    blocked_customers: int
    total_messages: int
    recent_customers: int


class AnalyticsEnvelope(CamelModel):
    analytics: AnalyticsResponse
