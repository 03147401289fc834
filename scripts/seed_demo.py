import sys
import os

# Ensure project root is in path
sys.path.append(os.getcwd())

from tapflow.core.database import Base, SessionLocal, engine
from tapflow.models import Organization, Campaign, OutreachMessage, Prospect
from tapflow.services.event_bus import send_event
from tapflow.workers.pipeline import bus


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    print("🚀 Seeding demo organization...")

    try:
        org = Organization(name="Demo Agency", plan="starter")
        db.add(org)
        db.flush()

        campaign = Campaign(
            org_id=org.id,
            name="Dentists - Austin",
            business_type="dentist",
            target_location="Austin, TX",
            status="active",
        )
        db.add(campaign)
        db.flush()

        send_event(db, "campaign/created", {"campaign_id": campaign.id, "org_id": org.id})
        db.commit()

        campaign_id = campaign.id
        print(f"📊 Org {org.id}, campaign {campaign_id}. Running pipeline inline...")

        executed = bus.drain()

        prospects = db.query(Prospect).filter(Prospect.campaign_id == campaign_id).count()
        drafts = db.query(OutreachMessage).filter(
            OutreachMessage.campaign_id == campaign_id,
            OutreachMessage.status == "pending_approval",
        ).count()
        print(f"🎉 Done: {executed} runs, {prospects} prospects, {drafts} drafts awaiting approval.")
        print(f"   Use header  X-Org-Id: {org.id}")

    except Exception as e:
        db.rollback()
        print(f"❌ Error: {e}")
    finally:
        db.close()

if __name__ == "__main__":
    seed()
