# koronet/models.py
from sqlalchemy import Column, Integer, String, DateTime

from koronet.db import Base


class RequestRecord(Base):
    __tablename__ = "requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False)
    endpoint = Column(String(255), nullable=False)
