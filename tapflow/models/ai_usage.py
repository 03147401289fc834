from sqlalchemy import Column, Integer, String, Float, TIMESTAMP
from datetime import datetime
from tapflow.core.database import Base

class AIUsageLog(Base):
    __tablename__ = "ai_usage_logs"

    id = Column(Integer, primary_key=True, index=True)

    task_type = Column(String) # 'lead_scoring', 'outreach_generation'
    model_name = Column(String)

    input_tokens = Column(Integer, default=0)
    output_tokens = Column(Integer, default=0)
    total_tokens = Column(Integer, default=0)

    estimated_cost = Column(Float)

    related_prospect_id = Column(Integer)

    status = Column(String, default="success")

    created_at = Column(TIMESTAMP, default=datetime.utcnow)
