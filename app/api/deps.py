from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db_session
from app.infra.realtime.hub import RoomRegistry
from app.services.access_control import EmployeePrincipal
from app.services.auth_service import AuthService
from app.services.errors import AuthenticationError
from app.services.message_relay import MessageRelay

bearer_scheme = HTTPBearer(auto_error=False)


def get_room_registry(request: Request) -> RoomRegistry | None:
    return getattr(request.app.state, "room_registry", None)


def get_message_relay(request: Request) -> MessageRelay:
    relay = getattr(request.app.state, "message_relay", None)
    if relay is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "StoreUnavailable", "message": "Message relay is not initialized"},
        )
    return relay


async def get_current_employee(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> EmployeePrincipal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "Unauthorized", "message": "Missing or invalid authorization credentials"},
        )

    try:
        return await AuthService(session).authenticate(credentials.credentials)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": exc.code, "message": str(exc)},
        ) from exc
