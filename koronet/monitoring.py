# koronet/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Driven by Settings (LOG_LEVEL, LOG_AS_JSON, SENTRY_DSN, ENVIRONMENT); call
configure() once at startup. Whether /metrics is served is decided per app from
its own settings.
"""

import logging
import time
from typing import Tuple

import sentry_sdk
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)
from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "koronet"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


# --- Logger setup
def setup_logger(name: str = LOGGER_NAME, level: str = "INFO", as_json: bool = True) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.getLevelName(level))
    if not logger.handlers:
        logger.addHandler(logging.StreamHandler())
    for handler in logger.handlers:
        if as_json:
            handler.setFormatter(JsonFormatter(LOG_FORMAT))
        else:
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return logger


logger = setup_logger()

def configure(settings) -> None:
    """Apply logging/Sentry settings. Safe to call more than once."""
    setup_logger(level=settings.log_level, as_json=settings.log_as_json)
    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.environment)
        logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "koronet_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "koronet_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

STORE_FAILURES = Counter(
    "koronet_store_failures_total",
    "Failed relational/key-value store operations",
    ["store", "operation"],
)

DEPENDENCY_UP = Gauge(
    "koronet_dependency_up",
    "1 if the last health probe of a dependency succeeded, else 0",
    ["service"],
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        logger.debug("Failed to record request metrics", exc_info=True)


def inc_store_failure(store: str, operation: str):
    try:
        STORE_FAILURES.labels(store=store, operation=operation).inc()
    except Exception:
        logger.debug("Failed to record store failure metric", exc_info=True)


def set_dependency_up(service: str, up: bool):
    try:
        DEPENDENCY_UP.labels(service=service).set(1 if up else 0)
    except Exception:
        logger.debug("Failed to record dependency gauge", exc_info=True)


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
