import json
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from tapflow.models import Prospect, OutreachMessage
from tapflow.schemas.pipeline import EmailDraft
from tapflow.services.event_bus import bus, send_event
from tapflow.services.llm_service import LLMService, extract_json, log_ai_usage
from tapflow.workers.pipeline.scoring import OUTREACH_TIERS

logger = logging.getLogger(__name__)


def _first_name(contact) -> str:
    if contact.first_name:
        return contact.first_name
    if contact.name:
        return contact.name.split(" ")[0]
    return "there"


def generate_fallback_email(prospect, contact) -> dict:
    """Fixed template filled with the company name and campaign business type."""
    first_name = _first_name(contact)
    company = prospect.company_name
    business_type = prospect.campaign.business_type if prospect.campaign and prospect.campaign.business_type else "businesses"

    return {
        "subject": f"Quick question about {company}",
        "body": (
            f"Hi {first_name},\n\n"
            f"I came across {company} and was impressed by what you're building.\n\n"
            f"We help {business_type} like yours find and qualify leads automatically using AI - "
            f"typically saving 20+ hours per week on prospecting.\n\n"
            f"Would you be open to a quick 15-minute call to see if this could help {company}?\n\n"
            f"Best,\n"
            f"[Your Name]"
        ),
        "personalization_notes": "Used company name and business type",
    }


def build_email_prompt(prospect, contact, tier: str) -> str:
    campaign = prospect.campaign
    tech = json.dumps(prospect.tech_stack) if prospect.tech_stack else "Unknown"

    return f"""You are an expert B2B cold email copywriter. Write a personalized cold email for this prospect.

PROSPECT INFO:
- Company: {prospect.company_name}
- Website: {prospect.website or 'N/A'}
- Contact Name: {contact.name or 'there'}
- Contact Title: {contact.title or 'N/A'}
- Lead Tier: {tier} (A=hot, B=warm, C=cold)
- Tech Stack: {tech}

CAMPAIGN CONTEXT:
- We help: {campaign.business_type if campaign else 'businesses'}
- Our value prop: AI-powered lead generation that finds and qualifies prospects automatically

REQUIREMENTS:
1. Keep it under 150 words
2. Personalize based on their website/business
3. One clear CTA (reply or book a call)
4. Professional but conversational tone
5. No spammy language or excessive punctuation

Return ONLY valid JSON:
{{
  "subject": "<email subject line>",
  "body": "<email body with \\n for line breaks>",
  "personalization_notes": "<what you personalized>"
}}"""


def write_email(db: Session, prospect, contact, tier: str, llm: LLMService = None) -> dict:
    llm = llm or LLMService()

    if not llm.enabled:
        return generate_fallback_email(prospect, contact)

    prompt = build_email_prompt(prospect, contact, tier)
    text = ""
    try:
        text = llm.complete(prompt, max_tokens=1000)
        draft = EmailDraft.model_validate(extract_json(text)).model_dump()
    except Exception as e:
        logger.error(f"⚠️  Email generation failed for prospect {prospect.id}, using template: {e}")
        log_ai_usage(db, "outreach_generation", llm.model, prompt, text, prospect.id, status="failed")
        return generate_fallback_email(prospect, contact)

    log_ai_usage(db, "outreach_generation", llm.model, prompt, text, prospect.id)
    return draft


@bus.function(id="content-agent", event="prospect/scored", concurrency=5, retries=3)
def generate_content(db: Session, data: dict) -> dict:
    prospect_id = data["prospect_id"]

    prospect = db.query(Prospect).get(prospect_id)
    if not prospect:
        raise LookupError(f"Prospect {prospect_id} not found")

    # The stored score wins over whatever the event carried
    tier = prospect.lead_score.tier if prospect.lead_score else data.get("tier")
    if tier not in OUTREACH_TIERS:
        logger.info(f"Prospect {prospect_id} is tier {tier}, skipping content generation")
        return {"prospect_id": prospect_id, "skipped": True, "reason": "tier"}

    contact = prospect.primary_contact
    if not contact or not contact.email:
        logger.info(f"No contact email for prospect {prospect_id}, skipping content generation")
        return {"prospect_id": prospect_id, "skipped": True, "reason": "no_email"}

    already = db.query(OutreachMessage.id).filter(OutreachMessage.contact_id == contact.id).first()
    if already:
        # Redelivered event: this contact already has a draft
        return {"prospect_id": prospect_id, "skipped": True, "reason": "already_drafted"}

    draft = write_email(db, prospect, contact, tier)

    message = OutreachMessage(
        contact_id=contact.id,
        campaign_id=prospect.campaign_id,
        subject=draft["subject"],
        body=draft["body"],
        personalization_data={
            "notes": draft.get("personalization_notes"),
            "tier": tier,
            "generated_at": datetime.utcnow().isoformat(),
        },
        status="pending_approval",
        sequence_step=1,
    )
    db.add(message)
    db.flush()

    send_event(db, "outreach/generated", {"contact_id": contact.id, "message_id": message.id})
    db.commit()

    logger.info(f"✉️  Draft {message.id} ready for approval (prospect {prospect_id})")

    return {"prospect_id": prospect_id, "message_id": message.id, "subject": message.subject}
