from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import func

from tapflow.models import Campaign, Prospect, LeadScore
from tapflow.schemas.campaign import CampaignCreate, CampaignUpdate
from tapflow.services.event_bus import send_event


class CampaignService:
    def __init__(self, db: Session, org_id: int):
        self.db = db
        self.org_id = org_id

    def _scoped(self):
        return self.db.query(Campaign).filter(Campaign.org_id == self.org_id)

    # ---------------------------------------------------------
    # 1. READ
    # ---------------------------------------------------------
    def list_campaigns(self):
        """Newest first, each with its prospect count."""
        counts = (
            self.db.query(Prospect.campaign_id, func.count(Prospect.id).label("prospect_count"))
            .group_by(Prospect.campaign_id)
            .subquery()
        )

        rows = (
            self.db.query(Campaign, counts.c.prospect_count)
            .outerjoin(counts, counts.c.campaign_id == Campaign.id)
            .filter(Campaign.org_id == self.org_id)
            .order_by(Campaign.created_at.desc(), Campaign.id.desc())
            .all()
        )

        result = []
        for campaign, prospect_count in rows:
            item = {c.name: getattr(campaign, c.name) for c in Campaign.__table__.columns}
            item["prospect_count"] = prospect_count or 0
            result.append(item)
        return result

    def get_campaign(self, campaign_id: int):
        return self._scoped().filter(Campaign.id == campaign_id).first()

    def get_campaign_detail(self, campaign_id: int):
        campaign = self.get_campaign(campaign_id)
        if not campaign:
            return None

        rows = (
            self.db.query(Prospect.status, LeadScore.tier)
            .outerjoin(LeadScore, LeadScore.prospect_id == Prospect.id)
            .filter(Prospect.campaign_id == campaign.id)
            .all()
        )

        stats = {
            "total_prospects": len(rows),
            "by_tier": {"A": 0, "B": 0, "C": 0},
            "by_status": {},
        }
        for status, tier in rows:
            if tier in stats["by_tier"]:
                stats["by_tier"][tier] += 1
            stats["by_status"][status] = stats["by_status"].get(status, 0) + 1

        item = {c.name: getattr(campaign, c.name) for c in Campaign.__table__.columns}
        item["stats"] = stats
        return item

    # ---------------------------------------------------------
    # 2. WRITE
    # ---------------------------------------------------------
    def create_campaign(self, data: CampaignCreate):
        """Creates an active campaign and kicks off discovery."""
        campaign = Campaign(
            org_id=self.org_id,
            name=data.name,
            business_type=data.business_type,
            target_location=data.target_location,
            search_radius_miles=data.search_radius_miles or 25,
            ideal_customer_profile=(
                data.ideal_customer_profile.model_dump(exclude_none=True)
                if data.ideal_customer_profile else None
            ),
            status="active",
        )
        self.db.add(campaign)
        self.db.flush()

        send_event(self.db, "campaign/created", {"campaign_id": campaign.id, "org_id": self.org_id})

        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def update_campaign(self, campaign_id: int, data: CampaignUpdate):
        campaign = self.get_campaign(campaign_id)
        if not campaign:
            return None

        update_data = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(campaign, key, value)
        campaign.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def delete_campaign(self, campaign_id: int) -> bool:
        campaign = self.get_campaign(campaign_id)
        if not campaign:
            return False

        self.db.delete(campaign)
        self.db.commit()
        return True
