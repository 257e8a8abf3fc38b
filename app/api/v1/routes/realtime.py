import logging
from uuid import UUID

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

from app.core.config import get_settings
from app.core.db import get_session_factory
from app.core.rate_limit import RateLimitRule
from app.infra.db.message_store import sql_message_store_factory
from app.infra.db.repositories import CustomerRepository
from app.infra.realtime.session import ConnectionScope, RealtimeSession
from app.services.auth_service import AuthService
from app.services.errors import AuthenticationError

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


def _parse_uuid(raw: str | None) -> UUID | None:
    if raw is None:
        return None
    try:
        return UUID(raw)
    except ValueError:
        return None


@router.websocket("/ws")
async def realtime_ws(websocket: WebSocket) -> None:
    registry = getattr(websocket.app.state, "room_registry", None)
    relay = getattr(websocket.app.state, "message_relay", None)
    if registry is None or relay is None:
        await websocket.close(code=1011, reason="Realtime relay not initialized")
        return

    try:
        session_factory = get_session_factory()
    except RuntimeError:
        await websocket.close(code=1011, reason="Database session is not initialized")
        return

    role = websocket.query_params.get("role", "").strip().lower()

    if role == "customer":
        customer_id = _parse_uuid(websocket.query_params.get("customer_id"))
        if customer_id is None:
            await websocket.close(
                code=1008,
                reason="Customer websocket requires customer_id query parameter",
            )
            return

        async with session_factory() as session:
            customer = await CustomerRepository(session).get_by_id(customer_id)
        if customer is None:
            await websocket.close(code=1008, reason="Customer not found")
            return

        scope = ConnectionScope.for_customer(customer_id)
    elif role == "employee":
        access_token = websocket.query_params.get("access_token", "").strip()
        if not access_token:
            await websocket.close(
                code=1008,
                reason="Employee websocket requires access_token query parameter",
            )
            return

        async with session_factory() as session:
            try:
                principal = await AuthService(session, settings=settings).authenticate(
                    access_token
                )
            except AuthenticationError:
                await websocket.close(code=1008, reason="Invalid or expired employee session")
                return

        scope = ConnectionScope.for_employee(principal)
    else:
        await websocket.close(
            code=1008,
            reason="Unsupported role. Use role=customer or role=employee",
        )
        return

    await websocket.accept()
    realtime_session = RealtimeSession(
        websocket=websocket,
        scope=scope,
        registry=registry,
        relay=relay,
        store_factory=sql_message_store_factory(session_factory),
        rate_limiter=getattr(websocket.app.state, "message_rate_limiter", None),
        rate_rule=RateLimitRule(
            limit=settings.customer_message_rate_limit,
            window_seconds=settings.customer_message_rate_window_seconds,
        ),
    )
    logger.info("Realtime connection opened (role=%s)", role)
    await realtime_session.send_connected()

    try:
        while True:
            raw_message = await websocket.receive_text()
            await realtime_session.handle_text(raw_message)
    except WebSocketDisconnect:
        logger.info("Realtime connection closed (role=%s)", role)
    finally:
        await realtime_session.close()
