from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Literal
from datetime import datetime

from tapflow.schemas.common import CampaignSummary, ContactResponse, ProspectSummary

MessageStatus = Literal[
    "draft", "pending_approval", "approved", "scheduled", "sending", "sent", "delivered",
    "opened", "clicked", "replied", "bounced", "failed",
]

# --- 1. REQUESTS ---
class MessageCreate(BaseModel):
    contact_id: int
    campaign_id: int
    subject: str = Field(min_length=1)
    body: str = Field(min_length=1)
    sequence_step: int = Field(1, ge=1)

class MessageUpdate(BaseModel):
    subject: Optional[str] = Field(None, min_length=1)
    body: Optional[str] = Field(None, min_length=1)

class ApproveRequest(BaseModel):
    scheduled_for: Optional[datetime] = None

class BulkApproveRequest(BaseModel):
    ids: List[int]

# --- 2. RESPONSES ---
class OutreachMessageResponse(BaseModel):
    id: int
    contact_id: int
    campaign_id: int
    subject: str
    body: str
    status: str
    sequence_step: Optional[int] = 1
    personalization_data: Optional[Dict[str, Any]] = None
    scheduled_for: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    opened_at: Optional[datetime] = None
    replied_at: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ContactWithProspect(ContactResponse):
    prospect: Optional[ProspectSummary] = None

class MessageDetail(OutreachMessageResponse):
    contact: Optional[ContactWithProspect] = None
    campaign: Optional[CampaignSummary] = None

class MessageListResponse(BaseModel):
    messages: List[MessageDetail]
    total: int
    page: int
    total_pages: int

class BulkApproveResult(BaseModel):
    approved: int

class OutreachStats(BaseModel):
    total: int
    draft: int = 0
    pending_approval: int = 0
    approved: int = 0
    sent: int = 0
    delivered: int = 0
    opened: int = 0
    clicked: int = 0
    replied: int = 0
    bounced: int = 0
    open_rate: float = 0.0
    click_rate: float = 0.0
    reply_rate: float = 0.0
    bounce_rate: float = 0.0
