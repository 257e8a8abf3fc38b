from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_employee
from app.core.db import get_db_session
from app.schemas.analytics import AnalyticsEnvelope, AnalyticsResponse
from app.services.access_control import EmployeePrincipal
from app.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("", response_model=AnalyticsEnvelope)
async def get_analytics(
    principal: EmployeePrincipal = Depends(get_current_employee),
    session: AsyncSession = Depends(get_db_session),
) -> AnalyticsEnvelope:
    summary = await AnalyticsService(session).get_summary(principal)
    return AnalyticsEnvelope(analytics=AnalyticsResponse(**asdict(summary)))
