from fastapi import APIRouter

from app.api.v1.routes import (
    analytics,
    auth,
    chat,
    conversations,
    customers,
    employees,
    health,
    messages,
    realtime,
)

api_router = APIRouter()
api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(auth.router, prefix="/v1", tags=["auth"])
api_router.include_router(messages.router, prefix="/v1", tags=["messages"])
api_router.include_router(
    conversations.router, prefix="/v1/conversations", tags=["conversations"]
)
api_router.include_router(customers.router, prefix="/v1/customers", tags=["customers"])
api_router.include_router(employees.router, prefix="/v1/employees", tags=["employees"])
api_router.include_router(analytics.router, prefix="/v1/analytics", tags=["analytics"])
api_router.include_router(chat.router, prefix="/v1/chat", tags=["chat"])
api_router.include_router(realtime.router, prefix="/v1/realtime", tags=["realtime"])
