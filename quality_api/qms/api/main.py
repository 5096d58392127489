from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

from fastapi import APIRouter, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from qms.core.deps import resolve_user_from_token
from qms.core.errors import QmsError
from qms.core.logging import configure_logging, correlation_id_var, user_id_var
from qms.core.settings import get_app_settings
from qms.db.models.security import User
from qms.db.run_migrations import main as run_alembic
from qms.db.seed import seed_all_data
from qms.db.session import get_session_maker
from qms.schemas.common import ErrorInfo, ErrorResponse, MessageResponse
from qms.schemas.realtime import WsEnvelope
from qms.services.notifications import NotificationService
from qms.services.realtime import broadcast_manager

# Routers
from qms.api.routes.auth import router as auth_router
from qms.api.routes.dashboards import router as dashboards_router
from qms.api.routes.formulations import router as formulations_router
from qms.api.routes.notifications import chat_router, router as notifications_router
from qms.api.routes.production import router as production_router
from qms.api.routes.quality import pcc_router, router as quality_router
from qms.api.routes.reports import router as reports_router
from qms.api.routes.uploads import router as uploads_router
from qms.api.routes.users import router as users_router

# Configure structured logging once at import
configure_logging()
logger = logging.getLogger(__name__)

settings = get_app_settings()

openapi_tags = [
    {"name": "Health", "description": "Liveness probe."},
    {"name": "Auth", "description": "Login, tokens and password management."},
    {"name": "Users", "description": "User administration (Administrator only)."},
    {"name": "Quality", "description": "Quality records, the quality flow, cycles and PCC tabs."},
    {"name": "Production", "description": "Production lots and the production queue."},
    {"name": "Formulations", "description": "Product formulations uploaded as Excel workbooks."},
    {"name": "Notifications", "description": "Notification bell, messages and replies."},
    {"name": "Chat", "description": "Conversations built over notifications."},
    {"name": "Dashboards", "description": "Role dashboards."},
    {"name": "Reports", "description": "Filtered module reports (JSON/CSV/Excel/PDF)."},
    {"name": "Uploads", "description": "Image and attachment storage."},
    {"name": "WebSocket", "description": "WebSocket usage, endpoints, and connection details."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Set the correlation id for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    token_user = user_id_var.set(None)
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)
        user_id_var.reset(token_user)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=getattr(request.state, "correlation_id", None),
        user_id=getattr(request.state, "user_id", None) or user_id_var.get(),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    response = _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def _validation_details(exc: RequestValidationError) -> list:
    # ctx may hold the raw exception raised by a model validator
    return [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=_validation_details(exc),
    )


@app.exception_handler(QmsError)
async def domain_exception_handler(request: Request, exc: QmsError):
    """
    Domain errors raised by services keep their own status and type code.
    """
    if exc.status_code >= 500:
        logger.error("Domain error %s: %s", exc.error_type, exc.message)
    else:
        logger.info("Domain error %s: %s", exc.error_type, exc.message)
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


@app.on_event("startup")
async def on_startup() -> None:
    """
    Run migrations and optional seeding on service startup.

    Seeding only fills empty collections, so it is safe on every restart.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            # env.py drives its own event loop
            await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)

    if settings.AUTO_SEED:
        try:
            logger.info("Running database seeding...")
            await seed_all_data()
            logger.info("Seeding completed.")
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


WEBSOCKET_ENDPOINTS: List[Dict[str, Any]] = [
    {
        "path": "/ws/notifications",
        "summary": "Unread notification counts (server push).",
        "query": ["token"],
        "close_codes": {"4401": "missing or invalid token", "4403": "inactive user"},
        "messages": {
            "client_to_server": ["ping"],
            "server_to_client": ["notifications.unread"],
        },
    }
]


# PUBLIC_INTERFACE
@api_v1.get(
    "/websocket-info",
    response_model=Dict[str, Any],
    summary="WebSocket Usage Information",
    description="Connection details for the notifications WebSocket.",
    tags=["WebSocket"],
)
def websocket_info() -> Dict[str, Any]:
    """Describe how to connect to the WebSocket endpoint of this service."""
    return {
        "usage": (
            "Connect with a valid access token as a 'token' query parameter. "
            "The server pushes the caller's unread notification count on connect and whenever it changes. "
            "Message format is JSON with fields: { type: string, payload: object, at: ISO-8601, user_id?: string }."
        ),
        "security": {"token": "Access JWT issued by /api/v1/auth/login; invalid tokens are closed with code 4401."},
        "endpoints": WEBSOCKET_ENDPOINTS,
        "notes": "WebSocket endpoints are not represented in OpenAPI schema; refer to this endpoint for usage.",
    }


# Include all routers under /api/v1
api_v1.include_router(auth_router)
api_v1.include_router(users_router)
api_v1.include_router(quality_router)
api_v1.include_router(pcc_router)
api_v1.include_router(production_router)
api_v1.include_router(formulations_router)
api_v1.include_router(notifications_router)
api_v1.include_router(chat_router)
api_v1.include_router(dashboards_router)
api_v1.include_router(reports_router)
api_v1.include_router(uploads_router)

app.include_router(api_v1)

if settings.STORAGE_BACKEND == "local" and settings.STORAGE_PUBLIC_BASE_URL.startswith("/"):
    app.mount(
        settings.STORAGE_PUBLIC_BASE_URL.rstrip("/"),
        StaticFiles(directory=settings.STORAGE_LOCAL_DIR, check_dir=False),
        name="files",
    )


async def _authenticate_ws(websocket: WebSocket) -> User | None:
    """
    Resolve the user of a WebSocket from its 'token' query param.

    Closes the socket with 4401 and returns None when the token is missing or invalid.
    """
    token = websocket.query_params.get("token")
    if token:
        async with get_session_maker()() as session:
            try:
                return await resolve_user_from_token(token, session)
            except HTTPException:
                pass
    await websocket.close(code=4401)
    return None


# PUBLIC_INTERFACE
@app.websocket("/ws/notifications")
async def ws_notifications(websocket: WebSocket):
    """
    WebSocket endpoint for real-time unread notification counts.

    Security:
      - Query param 'token' must be a valid access JWT of an active user.
    Messages:
      - Server -> Client: type='notifications.unread' payload={unreadCount}
      - Client -> Server: optional 'ping' to keepalive; other messages ignored.
    """
    await websocket.accept()
    user = await _authenticate_ws(websocket)
    if user is None:
        return
    if not user.is_active:
        await websocket.close(code=4403)
        return

    await broadcast_manager.connect_user(user.id, user.role, websocket)

    try:
        async with get_session_maker()() as session:
            count = await NotificationService(session).unread_count(user)
        env = WsEnvelope.unread(user.id, count)
        await websocket.send_json(env.model_dump(mode="json"))
    except Exception:
        logger.exception("Failed to send initial unread count")

    try:
        while True:
            msg = await websocket.receive_text()
            if msg and msg.lower() == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        await broadcast_manager.disconnect_user(user.id, websocket)
    except Exception:
        logger.exception("Error on ws_notifications connection")
        await broadcast_manager.disconnect_user(user.id, websocket)
        await websocket.close()
