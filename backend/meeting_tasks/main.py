from __future__ import annotations

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from meeting_tasks.api import api as health_api
from meeting_tasks.core.db import engine
from meeting_tasks.core.errors import (
    ActionInProgress,
    AuthFailure,
    action_in_progress_handler,
    auth_failure_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from meeting_tasks.core.settings import settings
from meeting_tasks.logging_utils import (
    bind_request_context,
    bind_user_context,
    configure_logging,
    get_logger,
)
from meeting_tasks.models import Base
from meeting_tasks.obs.metrics import render_prometheus, track_http_request
from meeting_tasks.routers import auth, dashboard
from meeting_tasks.services.shell import SessionRegistry

# Configure structured logging for the API once at startup
configure_logging("api", settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fastest path: auto-create in dev; keep Alembic for prod
    if settings.APP_ENV in ("dev", "test"):
        Base.metadata.create_all(bind=engine)

    app.state.registry = SessionRegistry(ttl=settings.SESSION_TTL_SECONDS)
    logger.info("session registry ready", extra={"env": settings.APP_ENV})
    try:
        yield
    finally:
        app.state.registry.close_all()
        logger.info("session registry closed")


app = FastAPI(title="Meeting Task Assistant", lifespan=lifespan)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(AuthFailure, auth_failure_handler)
app.add_exception_handler(ActionInProgress, action_in_progress_handler)
app.add_exception_handler(Exception, generic_exception_handler)


# ---------------------------------------------------------------------------
# Observability middleware (request ID + HTTP metrics)
# ---------------------------------------------------------------------------


@app.middleware("http")
async def observability_middleware(request: Request, call_next):
    """
    Attach a request_id to logs and track basic HTTP metrics
    (path/method/status + latency) for every request.
    """
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    bind_request_context(request_id)
    bind_user_context(None)

    status_holder: dict[str, int] = {"status": 500}
    path = request.url.path
    method = request.method

    with track_http_request(path, method, lambda: status_holder["status"]):
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "unhandled error in request",
                extra={"path": path, "method": method, "request_id": request_id},
            )
            raise
        status_holder["status"] = response.status_code

    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Metrics endpoint
# ---------------------------------------------------------------------------


@app.get("/metrics-prom", include_in_schema=False)
def metrics_prometheus() -> Response:
    """Prometheus text-format metrics for scraping and debugging."""
    body, content_type = render_prometheus()
    return Response(content=body, media_type=content_type)


@app.get("/", include_in_schema=False)
def root() -> dict[str, str]:
    """Simple root endpoint for quick manual checks."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# API routers
# ---------------------------------------------------------------------------

app.include_router(health_api)
app.include_router(auth.router)
app.include_router(dashboard.router)
