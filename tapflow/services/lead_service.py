import logging
import math
from datetime import datetime
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import SQLAlchemyError

from tapflow.models import Campaign, Contact, LeadScore, OutreachMessage, Prospect
from tapflow.schemas.lead import BulkImportRequest, ContactCreate, ProspectCreate

logger = logging.getLogger(__name__)


class LeadService:
    def __init__(self, db: Session, org_id: int):
        self.db = db
        self.org_id = org_id

    def _scoped(self):
        return (
            self.db.query(Prospect)
            .join(Campaign, Campaign.id == Prospect.campaign_id)
            .filter(Campaign.org_id == self.org_id)
        )

    def _campaign(self, campaign_id: int):
        return self.db.query(Campaign).filter(
            Campaign.id == campaign_id, Campaign.org_id == self.org_id
        ).first()

    # ---------------------------------------------------------
    # 1. READ
    # ---------------------------------------------------------
    def list_leads(self, campaign_id: int = None, status: str = None, tier: str = None,
                   page: int = 1, limit: int = 25):
        query = self._scoped()

        if campaign_id:
            query = query.filter(Prospect.campaign_id == campaign_id)
        if status:
            query = query.filter(Prospect.status == status)
        if tier:
            # Tier lives on lead_scores, filter before paging so totals stay honest
            query = query.join(LeadScore, LeadScore.prospect_id == Prospect.id).filter(LeadScore.tier == tier)

        total = query.count()
        prospects = (
            query.options(selectinload(Prospect.contacts), selectinload(Prospect.lead_score))
            .order_by(Prospect.created_at.desc(), Prospect.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        return {
            "prospects": prospects,
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def get_lead(self, prospect_id: int):
        return self._scoped().filter(Prospect.id == prospect_id).first()

    def get_lead_detail(self, prospect_id: int):
        """Prospect with contacts, score, campaign and every message sent to its contacts."""
        prospect = self.get_lead(prospect_id)
        if not prospect:
            return None

        messages = (
            self.db.query(OutreachMessage)
            .join(Contact, Contact.id == OutreachMessage.contact_id)
            .filter(Contact.prospect_id == prospect.id)
            .order_by(OutreachMessage.created_at.desc(), OutreachMessage.id.desc())
            .all()
        )

        item = {c.name: getattr(prospect, c.name) for c in Prospect.__table__.columns}
        item["contacts"] = prospect.contacts
        item["lead_score"] = prospect.lead_score
        item["campaign"] = prospect.campaign
        item["messages"] = messages
        return item

    # ---------------------------------------------------------
    # 2. WRITE
    # ---------------------------------------------------------
    def create_lead(self, data: ProspectCreate):
        """Manual entry. Returns None when the campaign is not in this org."""
        campaign = self._campaign(data.campaign_id)
        if not campaign:
            return None

        values = data.model_dump(exclude={"website"})
        prospect = Prospect(
            **values,
            website=str(data.website) if data.website else None,
            source="manual",
            status="new",
        )
        self.db.add(prospect)
        self.db.commit()
        self.db.refresh(prospect)
        return prospect

    def update_status(self, prospect_id: int, status: str):
        prospect = self.get_lead(prospect_id)
        if not prospect:
            return None

        prospect.status = status
        prospect.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(prospect)
        return prospect

    def add_contact(self, prospect_id: int, data: ContactCreate):
        prospect = self.get_lead(prospect_id)
        if not prospect:
            return None

        values = data.model_dump(exclude={"linkedin_url", "email"})
        contact = Contact(
            **values,
            prospect_id=prospect.id,
            email=str(data.email).lower() if data.email else None,
            linkedin_url=str(data.linkedin_url) if data.linkedin_url else None,
            source="manual",
        )
        self.db.add(contact)
        self.db.commit()
        self.db.refresh(contact)
        return contact

    def bulk_import(self, data: BulkImportRequest):
        """
        Imports rows one by one. A bad row is reported and skipped, the
        rest still land. Returns None when the campaign is not in this org.
        """
        campaign = self._campaign(data.campaign_id)
        if not campaign:
            return None

        results = {"created": 0, "failed": 0, "errors": []}

        for row in data.prospects:
            try:
                with self.db.begin_nested():
                    prospect = Prospect(
                        campaign_id=campaign.id,
                        company_name=row.company_name,
                        website=row.website,
                        phone=row.phone,
                        address=row.address,
                        source="import",
                        status="new",
                    )
                    self.db.add(prospect)
                    self.db.flush()

                    if row.contact_email or row.contact_name:
                        self.db.add(Contact(
                            prospect_id=prospect.id,
                            name=row.contact_name,
                            email=str(row.contact_email).lower() if row.contact_email else None,
                            title=row.contact_title,
                            is_primary=True,
                            source="import",
                        ))
                        self.db.flush()

                results["created"] += 1

            except SQLAlchemyError as e:
                results["failed"] += 1
                results["errors"].append(f"{row.company_name}: {e.__class__.__name__}")
                logger.warning(f"⚠️  Import row failed for {row.company_name}: {e}")

        self.db.commit()
        logger.info(f"📥 Imported {results['created']} prospects into campaign {campaign.id} ({results['failed']} failed)")
        return results

    def delete_lead(self, prospect_id: int) -> bool:
        prospect = self.get_lead(prospect_id)
        if not prospect:
            return False

        self.db.delete(prospect)
        self.db.commit()
        return True
