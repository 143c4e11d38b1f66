from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from studio.src.db.database import Base

class PipelineRecord(Base):
    __tablename__ = "pipelines"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    branch = Column(String(255), default="master")
    author = Column(String(255))
    last_run_id = Column(Integer, default=0)
    last_run_status = Column(String(50), default="pending")
    last_run_time = Column(String(32))
    duration = Column(String(32))
    stages = Column(JSONB, nullable=False)
    sources = Column(JSONB, default=list)
    history = Column(JSONB, default=list)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
