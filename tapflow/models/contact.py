from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from tapflow.core.database import Base

class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)

    prospect_id = Column(Integer, ForeignKey("prospects.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String)
    first_name = Column(String)
    last_name = Column(String)
    title = Column(String)

    email = Column(String)
    email_verified = Column(Boolean, default=False)
    phone = Column(String)
    linkedin_url = Column(String)

    is_primary = Column(Boolean, default=False)
    source = Column(String) # 'hunter', 'manual', 'import'

    created_at = Column(TIMESTAMP, default=datetime.utcnow)

    prospect = relationship("Prospect", back_populates="contacts")
    messages = relationship("OutreachMessage", back_populates="contact", cascade="all, delete-orphan")
