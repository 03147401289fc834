from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from tapflow.core.database import Base


# Status Flow: 'new' -> 'enriched' -> 'scored' -> 'contacted' -> 'replied' -> 'converted' / 'disqualified'
PROSPECT_STATUSES = ("new", "enriched", "scored", "contacted", "replied", "converted", "disqualified")

# Once outreach has started, pipeline re-runs leave the prospect alone
OUTREACH_STARTED_STATUSES = ("contacted", "replied", "converted", "disqualified")


class Prospect(Base):
    __tablename__ = "prospects"
    __table_args__ = (
        # Discovery upserts on this key so re-runs never duplicate a business
        UniqueConstraint("campaign_id", "source", "source_id", name="uq_prospect_campaign_source"),
    )

    id = Column(Integer, primary_key=True, index=True)

    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)

    company_name = Column(String, nullable=False)
    website = Column(Text)
    phone = Column(String)
    address = Column(Text)
    city = Column(String)
    state = Column(String)
    zip = Column(String)

    # Where it came from: 'google_maps', 'yelp', 'manual', 'import'
    source = Column(String, nullable=False)
    source_id = Column(String, nullable=True)

    # {cms, ecommerce, analytics[], marketing[]}
    tech_stack = Column(JSON, nullable=True)

    status = Column(String, default="new", index=True)

    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    campaign = relationship("Campaign", back_populates="prospects")
    contacts = relationship(
        "Contact",
        back_populates="prospect",
        cascade="all, delete-orphan",
        order_by="Contact.id",
    )
    lead_score = relationship("LeadScore", back_populates="prospect", uselist=False, cascade="all, delete-orphan")

    @property
    def primary_contact(self):
        """First contact flagged primary, otherwise the first one found."""
        for c in self.contacts:
            if c.is_primary:
                return c
        return self.contacts[0] if self.contacts else None
