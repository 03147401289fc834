from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tapflow.api.deps import get_db, get_current_org
from tapflow.models import Organization
from tapflow.schemas.common import ContactResponse
from tapflow.services.lead_service import LeadService
from tapflow.schemas.lead import (
    ProspectStatus,
    Tier,
    ProspectCreate,
    ProspectStatusUpdate,
    ProspectResponse,
    ProspectDetail,
    ProspectListResponse,
    ContactCreate,
    BulkImportRequest,
    BulkImportResult,
)

router = APIRouter(prefix="/api", tags=["Leads"])


# =========================================================
# 1. READ
# =========================================================

@router.get("/leads", response_model=ProspectListResponse)
def list_leads(
    campaign_id: Optional[int] = Query(None),
    status: Optional[ProspectStatus] = Query(None),
    tier: Optional[Tier] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_org),
):
    return LeadService(db, org.id).list_leads(
        campaign_id=campaign_id,
        status=status,
        tier=tier,
        page=page,
        limit=limit,
    )


@router.get("/leads/{prospect_id}", response_model=ProspectDetail)
def get_lead(prospect_id: int, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    prospect = LeadService(db, org.id).get_lead_detail(prospect_id)
    if not prospect:
        raise HTTPException(status_code=404, detail="Prospect not found")
    return prospect


# =========================================================
# 2. WRITE
# =========================================================

@router.post("/leads", response_model=ProspectResponse, status_code=201)
def create_lead(data: ProspectCreate, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    prospect = LeadService(db, org.id).create_lead(data)
    if not prospect:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return prospect


@router.post("/leads/import", response_model=BulkImportResult)
def bulk_import(data: BulkImportRequest, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    result = LeadService(db, org.id).bulk_import(data)
    if result is None:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return result


@router.patch("/leads/{prospect_id}/status", response_model=ProspectResponse)
def update_lead_status(
    prospect_id: int,
    data: ProspectStatusUpdate,
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_org),
):
    prospect = LeadService(db, org.id).update_status(prospect_id, data.status)
    if not prospect:
        raise HTTPException(status_code=404, detail="Prospect not found")
    return prospect


@router.post("/leads/{prospect_id}/contacts", response_model=ContactResponse, status_code=201)
def add_contact(
    prospect_id: int,
    data: ContactCreate,
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_org),
):
    contact = LeadService(db, org.id).add_contact(prospect_id, data)
    if not contact:
        raise HTTPException(status_code=404, detail="Prospect not found")
    return contact


@router.delete("/leads/{prospect_id}")
def delete_lead(prospect_id: int, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    if not LeadService(db, org.id).delete_lead(prospect_id):
        raise HTTPException(status_code=404, detail="Prospect not found")
    return {"success": True}
