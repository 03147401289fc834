from datetime import datetime
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from tapflow.models import Prospect, LeadScore


def _insert(db: Session, model):
    # Same on_conflict API on both dialects; SQLite is used by the test suite
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)


def upsert_prospects(db: Session, campaign_id: int, results: list[dict]) -> list[Prospect]:
    """
    Inserts directory results keyed on (campaign_id, source, source_id).
    Existing rows get fresh contact details but keep their pipeline status.
    """
    if not results:
        return []

    now = datetime.utcnow()
    rows = [
        {
            "campaign_id": campaign_id,
            "company_name": r["company_name"],
            "address": r.get("address"),
            "phone": r.get("phone"),
            "website": r.get("website"),
            "source": r["source"],
            "source_id": r["source_id"],
            "status": "new",
            "created_at": now,
            "updated_at": now,
        }
        for r in results
    ]

    stmt = _insert(db, Prospect).values(rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=["campaign_id", "source", "source_id"],
        set_={
            "company_name": stmt.excluded.company_name,
            "address": stmt.excluded.address,
            "phone": stmt.excluded.phone,
            "website": stmt.excluded.website,
            "updated_at": now,
        }
    )
    db.execute(stmt)

    prospects = []
    for r in results:
        p = db.query(Prospect).filter(
            Prospect.campaign_id == campaign_id,
            Prospect.source == r["source"],
            Prospect.source_id == r["source_id"],
        ).first()
        if p:
            prospects.append(p)
    return prospects


def upsert_lead_score(db: Session, prospect_id: int, result: dict, model_version: str = "v1"):
    """One score row per prospect; rescoring overwrites it."""
    now = datetime.utcnow()
    factors = {**result.get("factors", {}), "notes": result.get("notes", [])}

    stmt = _insert(db, LeadScore).values(
        prospect_id=prospect_id,
        score=result["score"],
        tier=result["tier"],
        scoring_factors=factors,
        model_version=model_version,
        scored_at=now,
        created_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["prospect_id"],
        set_={
            "score": stmt.excluded.score,
            "tier": stmt.excluded.tier,
            "scoring_factors": stmt.excluded.scoring_factors,
            "model_version": stmt.excluded.model_version,
            "scored_at": now,
        }
    )
    db.execute(stmt)
