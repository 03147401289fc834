from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from tapflow.api.deps import get_db, get_current_org
from tapflow.models import Organization
from tapflow.services.campaign_service import CampaignService
from tapflow.schemas.campaign import (
    CampaignCreate,
    CampaignUpdate,
    CampaignResponse,
    CampaignListItem,
    CampaignDetail,
)

router = APIRouter(prefix="/api", tags=["Campaigns"])


# =========================================================
# 1. READ
# =========================================================

@router.get("/campaigns", response_model=List[CampaignListItem])
def list_campaigns(db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    return CampaignService(db, org.id).list_campaigns()


@router.get("/campaigns/{campaign_id}", response_model=CampaignDetail)
def get_campaign(campaign_id: int, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    campaign = CampaignService(db, org.id).get_campaign_detail(campaign_id)
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


# =========================================================
# 2. WRITE
# =========================================================

@router.post("/campaigns", response_model=CampaignResponse, status_code=201)
def create_campaign(data: CampaignCreate, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    # Discovery starts from the campaign/created event
    return CampaignService(db, org.id).create_campaign(data)


@router.patch("/campaigns/{campaign_id}", response_model=CampaignResponse)
def update_campaign(
    campaign_id: int,
    data: CampaignUpdate,
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_org),
):
    campaign = CampaignService(db, org.id).update_campaign(campaign_id, data)
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


@router.delete("/campaigns/{campaign_id}")
def delete_campaign(campaign_id: int, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    if not CampaignService(db, org.id).delete_campaign(campaign_id):
        raise HTTPException(status_code=404, detail="Campaign not found")
    return {"success": True}
