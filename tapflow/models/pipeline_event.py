from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, JSON
from datetime import datetime
from tapflow.core.database import Base


class PipelineEvent(Base):
    """One queued run of a pipeline function for a named event."""
    __tablename__ = "pipeline_events"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False, index=True) # e.g. 'prospect/found'
    payload = Column(JSON, nullable=True)

    # NULL when no function listens for the event
    function_id = Column(String, nullable=True, index=True)

    # Status Flow: 'queued' -> 'running' -> 'completed' / 'failed'  ('skipped' = no listener)
    status = Column(String, default="queued", index=True)

    attempts = Column(Integer, default=0)
    max_retries = Column(Integer, default=3)
    next_attempt_at = Column(TIMESTAMP, nullable=True)

    last_error = Column(Text, nullable=True)
    result = Column(JSON, nullable=True)

    started_at = Column(TIMESTAMP, nullable=True)
    finished_at = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
