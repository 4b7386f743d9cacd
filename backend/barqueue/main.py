"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from barqueue.api.routes import api_router
from barqueue.core.config import settings
from barqueue.core.logging_config import configure_logging
from barqueue.core.phone import normalize_phone
from barqueue.core.rate_limit import limiter
from barqueue.db.base import Base
from barqueue.db.session import SessionLocal, engine
from barqueue.services.read_model import OrderFeed, ViewFilter
from barqueue.services.realtime import order_events, ws_manager
from barqueue.services.sms_service import close_sms_gateway

configure_logging()
logger = logging.getLogger(__name__)
request_logger = logging.getLogger("requests")

VERSION = "1.0.0"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging all HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next):
        # Skip logging for health checks and docs
        if request.url.path in ["/health", "/", "/docs", "/openapi.json"]:
            return await call_next(request)

        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            request_logger.error(
                f"Error: {request.method} {request.url.path} - "
                f"Exception: {str(e)} - Time: {process_time:.3f}s - Client: {client_ip}"
            )
            raise

        process_time = time.time() - start_time
        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        request_logger.log(
            log_level,
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - Time: {process_time:.3f}s - Client: {client_ip}"
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting bar order queue")

    # In production with PostgreSQL, use Alembic migrations
    if settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created (SQLite mode)")

    if settings.sms_enabled and not settings.sms_configured:
        logger.warning("SMS_ENABLED is set but Twilio credentials or sender are missing; SMS will be skipped")

    yield

    await close_sms_gateway()
    logger.info("Shutting down bar order queue")


app = FastAPI(
    title="Bar Order Queue",
    description="Drink orders from guests' phones, a bar queue, and SMS pickup notices",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting setup
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"ok": False, "error": "Internal server error"})


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - added last so it runs first (Starlette LIFO order)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With", "X-Profile-Id"],
    max_age=600,
)

app.include_router(api_router, prefix=settings.api_prefix)

# Serve locally stored avatars when they are addressed by a relative URL
if settings.avatar_public_base_url.startswith("/"):
    Path(settings.avatar_storage_dir).mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.avatar_public_base_url.rstrip("/"),
        StaticFiles(directory=settings.avatar_storage_dir),
        name="avatars",
    )


@app.get("/health")
def health_check():
    """Basic liveness check endpoint."""
    return {"status": "healthy", "version": VERSION}


@app.get("/health/ready")
def readiness_check():
    """Readiness probe with database and WebSocket status."""
    checks = {"database": "unknown", "websocket_manager": "unknown", "sms": "unknown"}

    db = None
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = "unhealthy"
    finally:
        if db:
            db.close()

    checks["websocket_manager"] = f"healthy ({ws_manager.get_connection_count()} connections)"

    if not settings.sms_enabled:
        checks["sms"] = "disabled"
    else:
        checks["sms"] = "configured" if settings.sms_configured else "not configured"

    return {
        "status": "ready" if checks["database"] == "healthy" else "degraded",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Bar Order Queue API",
        "docs": "/docs",
        "health": "/health",
    }


order_feed = OrderFeed(SessionLocal, events=order_events)


@app.websocket("/ws/orders")
async def websocket_orders(
    websocket: WebSocket,
    view: str = Query("bar"),
    phone: Optional[str] = Query(None),
):
    """Stream snapshots of an order view (bar, guest, log or ranking)."""
    try:
        view_filter = ViewFilter(view, phone=normalize_phone(phone) if phone else None)
    except ValueError as e:
        logger.warning(f"WebSocket rejected: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    channel = f"orders:{view}"
    if not await ws_manager.connect(websocket, channel):
        return

    snapshots = order_feed.subscribe(view_filter)
    try:
        async for snapshot in snapshots:
            await websocket.send_json(snapshot)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error in {channel}: {e}", exc_info=True)
    finally:
        await snapshots.aclose()
        ws_manager.disconnect(websocket, channel)
