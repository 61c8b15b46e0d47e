# koronet/db.py
"""
Relational store client: a pooled SQLAlchemy engine plus the few queries the
service needs. Errors from the driver propagate; handlers decide the response.
"""
import datetime
from typing import List, Dict, Any

from sqlalchemy import create_engine, select, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.exc import SQLAlchemyError

from koronet import monitoring
from koronet.clock import to_iso

Base = declarative_base()

HISTORY_LIMIT = 10


def _make_engine(url):
    connect_args = {"check_same_thread": False} if str(url).startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


class RequestStore:
    def __init__(self, url):
        self.engine = _make_engine(url)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init_schema(self) -> bool:
        """Create the requests table if missing. Logs and returns False on failure."""
        try:
            # import models lazily so Base metadata has them
            import koronet.models as models  # noqa: F401
            Base.metadata.create_all(bind=self.engine)
            monitoring.logger.info("Database schema initialized")
            return True
        except SQLAlchemyError:
            monitoring.logger.exception("Database initialization failed")
            return False

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def record_request(self, timestamp: datetime.datetime, endpoint: str) -> int:
        from koronet.models import RequestRecord
        with self.SessionLocal() as db:
            rr = RequestRecord(timestamp=timestamp, endpoint=endpoint)
            db.add(rr)
            db.commit()
            db.refresh(rr)
            return rr.id

    def recent_requests(self, limit: int = HISTORY_LIMIT) -> List[Dict[str, Any]]:
        """Newest first; rows sharing a timestamp come back in reverse insert order."""
        from koronet.models import RequestRecord
        stmt = (
            select(RequestRecord.timestamp, RequestRecord.endpoint)
            .order_by(RequestRecord.timestamp.desc(), RequestRecord.id.desc())
            .limit(limit)
        )
        with self.SessionLocal() as db:
            rows = db.execute(stmt).all()
        return [{"timestamp": to_iso(ts), "endpoint": endpoint} for ts, endpoint in rows]

    def close(self) -> None:
        self.engine.dispose()
