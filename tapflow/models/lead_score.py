from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from tapflow.core.database import Base

class LeadScore(Base):
    __tablename__ = "lead_scores"

    id = Column(Integer, primary_key=True, index=True)

    # One score per prospect, overwritten on rescoring
    prospect_id = Column(Integer, ForeignKey("prospects.id", ondelete="CASCADE"), nullable=False, unique=True)

    score = Column(Integer, nullable=False) # 0-100
    tier = Column(String(1), nullable=False) # 'A' hot, 'B' warm, 'C' cold

    # {website_quality, contact_quality, business_fit, tech_fit, location_fit, notes[]}
    scoring_factors = Column(JSON, nullable=True)
    model_version = Column(String, default="v1")

    scored_at = Column(TIMESTAMP, default=datetime.utcnow)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)

    prospect = relationship("Prospect", back_populates="lead_score")
