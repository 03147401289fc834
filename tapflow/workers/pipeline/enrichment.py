import logging

from sqlalchemy.orm import Session

from tapflow.models import Prospect, Contact
from tapflow.models.prospect import OUTREACH_STARTED_STATUSES
from tapflow.services.contact_finder import ContactFinder, analyze_tech_stack
from tapflow.services.email_validator import clean_email
from tapflow.services.event_bus import bus, send_event

logger = logging.getLogger(__name__)


@bus.function(id="enrichment-agent", event="prospect/found", concurrency=20, retries=3)
def enrich_prospect(db: Session, data: dict) -> dict:
    prospect_id = data["prospect_id"]

    prospect = db.query(Prospect).get(prospect_id)
    if not prospect:
        raise LookupError(f"Prospect {prospect_id} not found")

    if prospect.status in OUTREACH_STARTED_STATUSES:
        logger.info(f"Prospect {prospect_id} is already {prospect.status}, skipping enrichment")
        return {"prospect_id": prospect_id, "skipped": True, "reason": f"status_{prospect.status}"}

    found = ContactFinder().find_contacts(prospect.website)
    tech_stack = analyze_tech_stack(prospect.website)

    # Re-deliveries of the same event must not duplicate contacts
    known = {c.email.lower() for c in prospect.contacts if c.email}

    inserted = 0
    for c in found:
        email = clean_email(c.get("email"))
        if not email:
            logger.debug(f"Dropping contact without usable email for prospect {prospect_id}: {c.get('email')}")
            continue
        if email in known:
            continue

        db.add(Contact(
            prospect_id=prospect.id,
            name=c.get("name"),
            first_name=c.get("first_name"),
            last_name=c.get("last_name"),
            title=c.get("title"),
            email=email,
            email_verified=bool(c.get("email_verified", False)),
            phone=c.get("phone"),
            linkedin_url=c.get("linkedin_url"),
            is_primary=bool(c.get("is_primary", False)),
            source="hunter",
        ))
        known.add(email)
        inserted += 1

    prospect.tech_stack = tech_stack
    if prospect.status == "new":
        prospect.status = "enriched"

    send_event(db, "prospect/enriched", {"prospect_id": prospect.id})
    db.commit()

    logger.info(f"📇 Prospect {prospect.id} enriched: {inserted} contacts")

    return {
        "prospect_id": prospect.id,
        "contacts_found": inserted,
        "has_tech_stack": tech_stack is not None,
    }
