from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from healthsync.config import DEFAULT_JWT_SECRET, Settings, get_settings
from healthsync.exceptions import HealthSyncError
from healthsync.logging_config import configure_logging
from healthsync.routers import auth as auth_router
from healthsync.routers import icd11, notifications, organizations, patients, realtime
from healthsync.services.email_service import EmailService
from healthsync.services.icd11_service import Icd11Client
from healthsync.services.organization_service import OrganizationService
from healthsync.services.realtime_gateway import RealtimeGateway
from healthsync.stores import build_storage

logger = structlog.get_logger(__name__)


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Middleware to add no-cache headers to prevent browser caching of patient data."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


async def healthsync_error_handler(request: Request, exc: HealthSyncError):
    body = {"error": exc.error}
    if exc.details:
        body["details"] = jsonable_encoder(exc.details)
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, status_code=exc.status_code, error=exc.error)
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "invalid request", "details": details})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: pick storage, seed organizations, wire the gateway
        if settings.jwt_secret == DEFAULT_JWT_SECRET:
            logger.warning("jwt_secret_default", detail="set JWT_SECRET before deploying")
        app.state.storage = await build_storage(settings)
        app.state.gateway = RealtimeGateway(enabled=settings.enable_sockets)
        app.state.icd11_client = Icd11Client(settings.icd11_api_url, settings.upstream_timeout_seconds)
        app.state.mailer = EmailService(settings)
        await OrganizationService(app.state.storage).seed()
        logger.info(
            "startup_complete",
            storage=app.state.storage.backend,
            sockets=settings.enable_sockets,
        )
        yield
        # Shutdown
        await app.state.storage.close()

    app = FastAPI(
        title="HealthSync EMR",
        description="Patient assignment, diagnosis and notification service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(NoCacheMiddleware)

    app.add_exception_handler(HealthSyncError, healthsync_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(organizations.router, prefix="/api/organizations", tags=["Organizations"])
    app.include_router(patients.router, prefix="/api/patients", tags=["Patients"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
    app.include_router(icd11.router, prefix="/api/icd11", tags=["ICD-11"])
    if settings.enable_sockets:
        app.include_router(realtime.router, tags=["Realtime"])

    @app.get("/health")
    async def health_check(request: Request):
        gateway: RealtimeGateway = request.app.state.gateway
        return {
            "ok": True,
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "socketConnections": gateway.connection_count,
            "socketEnabled": gateway.enabled,
            "storage": request.app.state.storage.backend,
        }

    return app


configure_logging(get_settings().log_level, get_settings().log_json)
app = create_app()
