# koronet/schemas.py
from typing import List, Optional
from pydantic import BaseModel

GREETING = "Hi Koronet Team."


class ServiceNames(BaseModel):
    database: str = "PostgreSQL"
    cache: str = "Redis"


class RootResponse(BaseModel):
    message: str = GREETING
    timestamp: str
    services: ServiceNames = ServiceNames()


class RootError(BaseModel):
    message: str = GREETING
    error: str = "Service temporarily unavailable"
    timestamp: str


class ServiceHealth(BaseModel):
    postgresql: str = "unknown"
    redis: str = "unknown"


class HealthReport(BaseModel):
    status: str
    timestamp: str
    services: ServiceHealth

    @property
    def http_status(self) -> int:
        return 200 if self.status == "OK" else 503


class CacheResponse(BaseModel):
    lastRequest: Optional[str] = None
    timestamp: str


class HistoryEntry(BaseModel):
    timestamp: str
    endpoint: str


class HistoryResponse(BaseModel):
    requests: List[HistoryEntry]
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
