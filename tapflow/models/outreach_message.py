from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from tapflow.core.database import Base


# Status Flow: 'draft' -> 'pending_approval' -> 'approved' / 'scheduled' -> 'sending' -> 'sent'
#   -> 'delivered' -> 'opened' -> 'clicked' -> 'replied'   ('bounced', 'failed' are terminal)
MESSAGE_STATUSES = (
    "draft", "pending_approval", "approved", "scheduled", "sending", "sent", "delivered",
    "opened", "clicked", "replied", "bounced", "failed",
)


class OutreachMessage(Base):
    __tablename__ = "outreach_messages"

    id = Column(Integer, primary_key=True, index=True)

    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)

    subject = Column(Text, nullable=False)
    body = Column(Text, nullable=False)

    status = Column(String, default="draft", index=True)
    sequence_step = Column(Integer, default=1)

    # What the writer used: {notes, tier, generated_at}
    personalization_data = Column(JSON, nullable=True)

    scheduled_for = Column(TIMESTAMP, nullable=True)
    sent_at = Column(TIMESTAMP, nullable=True)
    opened_at = Column(TIMESTAMP, nullable=True)
    replied_at = Column(TIMESTAMP, nullable=True)

    error_message = Column(Text, nullable=True)

    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    contact = relationship("Contact", back_populates="messages")
    campaign = relationship("Campaign", back_populates="messages")
