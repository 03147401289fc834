import json
import logging

from sqlalchemy.orm import Session

from tapflow.models import Prospect
from tapflow.schemas.pipeline import ScoreResult
from tapflow.services.event_bus import bus, send_event
from tapflow.services.llm_service import LLMService, extract_json, log_ai_usage
from tapflow.workers.pipeline.bulk_writer import upsert_lead_score

logger = logging.getLogger(__name__)

BASE_SCORE = 50
TIER_A_MIN = 80
TIER_B_MIN = 50

# Only these tiers move on to content generation
OUTREACH_TIERS = ("A", "B")


def tier_for(score: int) -> str:
    if score >= TIER_A_MIN:
        return "A"
    if score >= TIER_B_MIN:
        return "B"
    return "C"


def calculate_fallback_score(prospect) -> dict:
    """
    Additive point tally used when no model is configured or its answer
    cannot be used. Without contacts the contact_quality factor stays 0.
    """
    score = BASE_SCORE
    factors = {
        "website_quality": 0,
        "contact_quality": 0,
        "business_fit": 15,
        "tech_fit": 5,
        "location_fit": 10,
    }
    notes = []

    # Website quality
    if prospect.website:
        factors["website_quality"] = 15
        score += 10
        notes.append("Has website")
    else:
        notes.append("No website found")

    # Contact quality
    contacts = list(prospect.contacts or [])
    if contacts:
        factors["contact_quality"] = 10
        score += 10
        if contacts[0].email:
            factors["contact_quality"] += 5
            score += 5
            notes.append("Has email contact")
    else:
        notes.append("No contacts found")

    # Tech stack
    if prospect.tech_stack:
        factors["tech_fit"] = 10
        score += 5

    return {"score": score, "tier": tier_for(score), "factors": factors, "notes": notes}


def build_scoring_prompt(prospect) -> str:
    campaign = prospect.campaign
    contacts = list(prospect.contacts or [])
    first_title = contacts[0].title if contacts and contacts[0].title else "Unknown"
    tech = json.dumps(prospect.tech_stack) if prospect.tech_stack else "Unknown"
    icp = json.dumps(campaign.ideal_customer_profile) if campaign and campaign.ideal_customer_profile else "Not specified"

    return f"""You are a lead scoring assistant. Analyze this prospect and provide a score from 0-100 and a tier (A, B, or C).

Prospect Data:
- Company: {prospect.company_name}
- Website: {prospect.website or 'None'}
- Location: {prospect.address or 'Unknown'}
- Tech Stack: {tech}
- Has Email Contact: {'true' if contacts else 'false'}
- Contact Title: {first_title}

Target Business Type: {campaign.business_type if campaign else 'Unknown'}
Ideal Customer Profile: {icp}

Scoring criteria:
- A tier (80-100): Perfect fit, has website, verified email, decision maker contact
- B tier (50-79): Good fit, missing some info but promising
- C tier (0-49): Poor fit or missing critical information

Respond in JSON format only:
{{
  "score": <number>,
  "tier": "<A|B|C>",
  "factors": {{
    "website_quality": <0-20>,
    "contact_quality": <0-20>,
    "business_fit": <0-30>,
    "tech_fit": <0-15>,
    "location_fit": <0-15>
  }},
  "notes": ["<reason1>", "<reason2>"]
}}"""


def calculate_score(db: Session, prospect, llm: LLMService = None) -> dict:
    llm = llm or LLMService()

    if not llm.enabled:
        logger.info("No LLM key configured, using fallback scoring")
        return calculate_fallback_score(prospect)

    prompt = build_scoring_prompt(prospect)
    text = ""
    try:
        text = llm.complete(prompt, max_tokens=500)
        result = ScoreResult.model_validate(extract_json(text)).model_dump()
    except Exception as e:
        logger.error(f"⚠️  Model scoring failed for prospect {prospect.id}, using fallback: {e}")
        log_ai_usage(db, "lead_scoring", llm.model, prompt, text, prospect.id, status="failed")
        return calculate_fallback_score(prospect)

    log_ai_usage(db, "lead_scoring", llm.model, prompt, text, prospect.id)
    return result


@bus.function(id="scoring-agent", event="prospect/enriched", concurrency=5, retries=3)
def score_prospect(db: Session, data: dict) -> dict:
    prospect_id = data["prospect_id"]

    prospect = db.query(Prospect).get(prospect_id)
    if not prospect:
        raise LookupError(f"Prospect {prospect_id} not found")

    result = calculate_score(db, prospect)

    upsert_lead_score(db, prospect.id, result)
    if prospect.status in ("new", "enriched"):
        prospect.status = "scored"

    if result["tier"] in OUTREACH_TIERS:
        send_event(db, "prospect/scored", {
            "prospect_id": prospect.id,
            "score": result["score"],
            "tier": result["tier"],
        })

    db.commit()
    logger.info(f"📊 Prospect {prospect.id} scored {result['score']} (tier {result['tier']})")

    return {"prospect_id": prospect.id, "score": result["score"], "tier": result["tier"]}
