from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.api.router import api_router
from app.core.config import get_settings
from app.core.db import close_engine, create_schema, get_session_factory, init_engine
from app.core.logging import configure_logging
from app.core.rate_limit import InMemoryRateLimiter
from app.infra.db.message_store import sql_message_store_factory
from app.infra.realtime import RoomRegistry
from app.services.message_relay import MessageRelay

settings = get_settings()
settings.validate_security_settings()
logger = configure_logging(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = init_engine()
    app.state.db_engine = engine
    if settings.db_auto_create:
        await create_schema(engine)

    registry = RoomRegistry(send_timeout_seconds=settings.realtime_send_timeout_seconds)
    app.state.room_registry = registry
    app.state.message_relay = MessageRelay(
        sql_message_store_factory(get_session_factory()),
        registry,
        allow_closed_conversations=settings.allow_messages_in_closed_conversations,
    )
    app.state.message_rate_limiter = InMemoryRateLimiter()
    logger.info("Support chat relay started (env=%s)", settings.app_env)

    yield

    await close_engine(engine)
    logger.info("Support chat relay stopped")


app = FastAPI(
    title="Multi-tenant Support Chat API",
    version="0.1.0",
    docs_url="/docs" if settings.app_env != "production" else None,
    redoc_url="/redoc" if settings.app_env != "production" else None,
    lifespan=lifespan,
)

if settings.trusted_hosts:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.trusted_hosts,
    )

if settings.force_https:
    app.add_middleware(HTTPSRedirectMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault(
        "Referrer-Policy",
        "strict-origin-when-cross-origin",
    )
    if settings.force_https:
        response.headers.setdefault(
            "Strict-Transport-Security",
            "max-age=31536000; includeSubDomains",
        )
    return response


app.include_router(api_router, prefix="/api")


@app.get("/", tags=["meta"])
async def root() -> dict[str, str]:
    return {"service": "support-chat-relay", "status": "ok"}
