# koronet/health.py
"""
Health aggregation: probe each store independently and fold the results into
one report. status is OK only when every probe is healthy.
"""
from koronet import monitoring
from koronet.clock import now_iso
from koronet.schemas import HealthReport, ServiceHealth

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


def _probe(name: str, ping) -> str:
    try:
        ping()
    except Exception as e:
        monitoring.logger.warning("Health probe failed", extra={"service": name, "error": str(e)})
        monitoring.set_dependency_up(name, False)
        return UNHEALTHY
    monitoring.set_dependency_up(name, True)
    return HEALTHY


def check_health(store, cache) -> HealthReport:
    services = ServiceHealth(
        postgresql=_probe("postgresql", store.ping),
        redis=_probe("redis", cache.ping),
    )
    ok = services.postgresql == HEALTHY and services.redis == HEALTHY
    return HealthReport(
        status="OK" if ok else "DEGRADED",
        timestamp=now_iso(),
        services=services,
    )
