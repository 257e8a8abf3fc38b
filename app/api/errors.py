from typing import NoReturn

from fastapi import HTTPException, status

from app.domain.exceptions import InvalidConversationTransition
from app.services.errors import (
    AuthenticationError,
    ConversationClosedError,
    StoreUnavailableError,
)


def _detail(exc: Exception) -> dict[str, str]:
    return {
        "code": getattr(exc, "code", exc.__class__.__name__),
        "message": str(exc),
    }


def raise_for_service_error(exc: Exception) -> NoReturn:
    if isinstance(exc, AuthenticationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=_detail(exc)
        ) from exc
    if isinstance(exc, PermissionError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=_detail(exc)
        ) from exc
    if isinstance(exc, LookupError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=_detail(exc)
        ) from exc
    if isinstance(exc, (ConversationClosedError, InvalidConversationTransition)):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=_detail(exc)
        ) from exc
    if isinstance(exc, StoreUnavailableError):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_detail(exc)
        ) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=_detail(exc)
        ) from exc
    raise exc
