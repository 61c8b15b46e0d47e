# koronet/app.py
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, PlainTextResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from koronet import monitoring
from koronet.cache import LastRequestCache
from koronet.clock import utc_now, to_iso, now_iso
from koronet.config import Settings
from koronet.db import RequestStore
from koronet.health import check_health
from koronet.schemas import (
    RootResponse, RootError, CacheResponse, HistoryResponse, ErrorResponse,
)

# Both "connection refused" and "bad query/command" land here.
STORE_ERRORS = (RedisError, SQLAlchemyError)

UNMATCHED_ROUTE = "unmatched"

router = APIRouter()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.get("/")
def root(request: Request):
    """
    GET /
    Stamp the Last-Request Marker, append a Request Record, greet.
    No rollback: a failed insert leaves the cache write in place.
    """
    state = request.app.state
    ts = utc_now()
    timestamp = to_iso(ts)
    failed_op = ("redis", "set")
    try:
        state.cache.mark(timestamp)
        failed_op = ("postgresql", "insert")
        state.store.record_request(ts, "/")
    except STORE_ERRORS:
        monitoring.logger.exception("Error in main endpoint")
        monitoring.inc_store_failure(*failed_op)
        return JSONResponse(
            status_code=500,
            content=RootError(timestamp=now_iso()).model_dump(),
        )
    return JSONResponse(status_code=200, content=RootResponse(timestamp=timestamp).model_dump())


@router.get("/health")
def health(request: Request):
    report = check_health(request.app.state.store, request.app.state.cache)
    return JSONResponse(status_code=report.http_status, content=report.model_dump())


@router.get("/cache")
def cache(request: Request):
    try:
        last = request.app.state.cache.last()
    except STORE_ERRORS:
        monitoring.logger.exception("Error retrieving cache")
        monitoring.inc_store_failure("redis", "get")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Cache service unavailable").model_dump(),
        )
    return JSONResponse(
        status_code=200,
        content=CacheResponse(lastRequest=last, timestamp=now_iso()).model_dump(),
    )


@router.get("/history")
def history(request: Request):
    try:
        rows = request.app.state.store.recent_requests()
    except STORE_ERRORS:
        monitoring.logger.exception("Error retrieving history")
        monitoring.inc_store_failure("postgresql", "select")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Database service unavailable").model_dump(),
        )
    return JSONResponse(
        status_code=200,
        content=HistoryResponse(requests=rows, timestamp=now_iso()).model_dump(),
    )


@router.get("/metrics")
def metrics(request: Request):
    if not request.app.state.settings.prometheus_enabled:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)


# ---------------------------------------------------------------------------
# Startup / shutdown
# ---------------------------------------------------------------------------
def _log_connectivity(store: RequestStore, cache: LastRequestCache) -> None:
    """Probe both stores once at boot; a down dependency is logged, never fatal."""
    for name, ping in (("Redis", cache.ping), ("PostgreSQL", store.ping)):
        try:
            ping()
            monitoring.logger.info(f"{name} connected successfully")
        except STORE_ERRORS:
            monitoring.logger.exception(f"{name} connection initialization failed")


def shutdown(store: RequestStore, cache: LastRequestCache) -> None:
    """Close the key-value connection, then the relational pool."""
    try:
        cache.close()
    except RedisError:
        monitoring.logger.exception("Error closing Redis connection")
    store.close()
    monitoring.logger.info("Connections closed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    app.state.store.init_schema()
    _log_connectivity(app.state.store, app.state.cache)
    monitoring.logger.info(f"Koronet web server running on port {settings.port}")
    monitoring.logger.info(f"Health check available at http://localhost:{settings.port}/health")
    yield
    monitoring.logger.info("Shutdown signal received, shutting down gracefully")
    shutdown(app.state.store, app.state.cache)


def _route_label(request: Request) -> str:
    """Matched route template, so unknown paths share one metric series."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RequestStore] = None,
    cache: Optional[LastRequestCache] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    monitoring.configure(settings)

    app = FastAPI(title="Koronet Web Server", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store or RequestStore(settings.sqlalchemy_url)
    app.state.cache = cache or LastRequestCache.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["X-DNS-Prefetch-Control"] = "off"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    @app.middleware("http")
    async def access_log_and_metrics(request: Request, call_next):
        start = time.time()
        path = request.url.path
        method = request.method
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            # unexpected errors are logged by handle_unexpected
            monitoring.observe_request(start, _route_label(request), method, status)
            monitoring.logger.info(
                "request",
                extra={
                    "method": method,
                    "path": path,
                    "status": int(status),
                    "duration_ms": round((time.time() - start) * 1000, 2),
                },
            )

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        monitoring.logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            ErrorResponse(error="Internal server error").model_dump(),
            status_code=500,
        )

    app.include_router(router)
    return app
