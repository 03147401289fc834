from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from tapflow.core.database import Base


CAMPAIGN_STATUSES = ("draft", "active", "paused", "completed")


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)

    org_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False) # e.g. "Dentists - Austin"
    status = Column(String, default="draft") # 'draft', 'active', 'paused', 'completed'

    # Targeting
    business_type = Column(String, nullable=False) # e.g. "dentist"
    target_location = Column(String, nullable=False) # e.g. "Austin, TX"
    search_radius_miles = Column(Integer, default=25)

    # {min_employees, max_employees, industries[], keywords[]}
    ideal_customer_profile = Column(JSON, nullable=True)

    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    organization = relationship("Organization", back_populates="campaigns")
    prospects = relationship("Prospect", back_populates="campaign", cascade="all, delete-orphan")
    messages = relationship("OutreachMessage", back_populates="campaign", cascade="all, delete-orphan")
