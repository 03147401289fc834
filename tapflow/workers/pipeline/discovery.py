import logging

from sqlalchemy.orm import Session

from tapflow.models import Campaign
from tapflow.services.directory_search import search_all
from tapflow.services.event_bus import bus, send_event
from tapflow.workers.pipeline.bulk_writer import upsert_prospects

logger = logging.getLogger(__name__)


@bus.function(id="discovery-agent", event="campaign/created", concurrency=10, retries=3)
def discover_prospects(db: Session, data: dict) -> dict:
    """Finds businesses for a new campaign and queues each one for enrichment."""
    campaign_id = data["campaign_id"]

    campaign = db.query(Campaign).get(campaign_id)
    if not campaign:
        raise LookupError(f"Campaign {campaign_id} not found")

    results = search_all(
        campaign.business_type,
        campaign.target_location,
        campaign.search_radius_miles or 25,
    )

    prospects = upsert_prospects(db, campaign.id, results)

    for p in prospects:
        send_event(db, "prospect/found", {"prospect_id": p.id, "campaign_id": campaign.id})

    db.commit()
    logger.info(f"🎯 Campaign {campaign.id}: {len(prospects)} prospects found")

    return {"campaign_id": campaign.id, "prospects_found": len(prospects)}
