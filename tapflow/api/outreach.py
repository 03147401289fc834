from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tapflow.api.deps import get_db, get_current_org
from tapflow.models import Organization
from tapflow.services.outreach_service import OutreachService, InvalidTransition
from tapflow.schemas.outreach import (
    MessageStatus,
    MessageCreate,
    MessageUpdate,
    ApproveRequest,
    BulkApproveRequest,
    BulkApproveResult,
    OutreachMessageResponse,
    MessageDetail,
    MessageListResponse,
    OutreachStats,
)

router = APIRouter(prefix="/api", tags=["Outreach"])


# =========================================================
# 1. LISTS & STATS
# =========================================================

@router.get("/outreach", response_model=MessageListResponse)
def list_messages(
    campaign_id: Optional[int] = Query(None),
    status: Optional[MessageStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_org),
):
    return OutreachService(db, org.id).list_messages(
        campaign_id=campaign_id, status=status, page=page, limit=limit
    )


@router.get("/outreach/pending", response_model=List[MessageDetail])
def pending_approval(
    campaign_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_org),
):
    return OutreachService(db, org.id).pending_approval(campaign_id)


@router.get("/outreach/stats", response_model=OutreachStats)
def outreach_stats(
    campaign_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_org),
):
    return OutreachService(db, org.id).stats(campaign_id)


@router.get("/outreach/{message_id}", response_model=MessageDetail)
def get_message(message_id: int, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    message = OutreachService(db, org.id).get_message(message_id)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


# =========================================================
# 2. DRAFTS
# =========================================================

@router.post("/outreach", response_model=OutreachMessageResponse, status_code=201)
def create_message(data: MessageCreate, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    message = OutreachService(db, org.id).create_message(data)
    if not message:
        raise HTTPException(status_code=404, detail="Contact or campaign not found")
    return message


@router.patch("/outreach/{message_id}", response_model=OutreachMessageResponse)
def update_message(
    message_id: int,
    data: MessageUpdate,
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_org),
):
    try:
        message = OutreachService(db, org.id).update_message(message_id, data)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


# =========================================================
# 3. APPROVAL
# =========================================================

@router.post("/outreach/bulk-approve", response_model=BulkApproveResult)
def bulk_approve(data: BulkApproveRequest, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    approved = OutreachService(db, org.id).bulk_approve(data.ids)
    return {"approved": approved}


@router.post("/outreach/{message_id}/approve", response_model=OutreachMessageResponse)
def approve_message(
    message_id: int,
    data: Optional[ApproveRequest] = None,
    db: Session = Depends(get_db),
    org: Organization = Depends(get_current_org),
):
    scheduled_for = data.scheduled_for if data else None
    try:
        message = OutreachService(db, org.id).approve(message_id, scheduled_for)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


@router.post("/outreach/{message_id}/reject")
def reject_message(message_id: int, db: Session = Depends(get_db), org: Organization = Depends(get_current_org)):
    if not OutreachService(db, org.id).reject(message_id):
        raise HTTPException(status_code=404, detail="Message not found")
    return {"success": True}
