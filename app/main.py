from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import get_settings
from app.core.exceptions import AppError, DependencyError
from app.core.logging import configure_logging
from app.core.middleware import RequestIDMiddleware
from app.core.responses import error_response
from app.db.session import SessionLocal
from app.integrations.redis import close_redis, get_redis
from app.realtime.hub import LocalBroker, RedisBroker, RoomHub
from app.services.ai.providers import get_ai_provider
from app.services.seed import seed_database

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


def _sanitize_json(value):
    if isinstance(value, dict):
        return {key: _sanitize_json(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_sanitize_json(item) for item in value]
    if isinstance(value, tuple):
        return [_sanitize_json(item) for item in value]
    if isinstance(value, Exception):
        return str(value)
    return value


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Application startup")
    if settings.seed_on_startup:
        async with SessionLocal() as session:
            await seed_database(session, get_ai_provider())
    if settings.realtime_broker == "redis":
        app.state.broker = RedisBroker(app.state.room_hub, get_redis(), settings.realtime_channel)
    await app.state.broker.start()
    yield
    await app.state.broker.stop()
    await get_ai_provider().aclose()
    await close_redis()
    logger.info("Application shutdown")


settings = get_settings()
app = FastAPI(
    title=settings.project_name,
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Users", "description": "Resolved caller identity"},
        {"name": "Categories", "description": "Knowledge base categories"},
        {"name": "Articles", "description": "Knowledge base articles and search"},
        {"name": "Tickets", "description": "Support tickets, messages and attachments"},
        {"name": "Macros", "description": "Canned agent replies"},
        {"name": "Dashboard", "description": "Agent statistics and analytics"},
        {"name": "Assist", "description": "AI assistant answers and streams"},
        {"name": "Realtime", "description": "Websocket rooms for tickets and AI chat"},
    ],
)
app.state.room_hub = RoomHub()
app.state.broker = LocalBroker(app.state.room_hub)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_prefix)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, DependencyError):
        logger.error("Dependency failure %s: %s", exc.code, exc.message)
        return JSONResponse(
            status_code=500,
            content=error_response("internal_error", GENERIC_ERROR, request=request),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message, exc.details or None, request=request),
    )


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response("http_error", message, request=request),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    sanitized_errors = _sanitize_json(exc.errors())
    return JSONResponse(
        status_code=400,
        content=error_response(
            "validation_error",
            "Request validation failed",
            {"errors": sanitized_errors},
            request=request,
        ),
    )


@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=error_response("internal_error", GENERIC_ERROR, request=request),
    )
