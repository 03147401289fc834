from datetime import datetime
from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from tapflow.core.database import Base

class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False)
    plan = Column(String, default="starter") # 'starter', 'growth', 'scale'

    created_at = Column(TIMESTAMP, default=datetime.utcnow)

    campaigns = relationship("Campaign", back_populates="organization", cascade="all, delete-orphan")
