from pydantic import BaseModel, EmailStr, Field, HttpUrl
from typing import List, Optional, Dict, Any, Literal
from datetime import datetime

from tapflow.schemas.common import CampaignSummary, ContactResponse, LeadScoreResponse
from tapflow.schemas.outreach import OutreachMessageResponse

ProspectStatus = Literal["new", "enriched", "scored", "contacted", "replied", "converted", "disqualified"]
Tier = Literal["A", "B", "C"]

# --- 1. PROSPECTS ---
class ProspectCreate(BaseModel):
    campaign_id: int
    company_name: str = Field(min_length=1)
    website: Optional[HttpUrl] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None

class ProspectStatusUpdate(BaseModel):
    status: ProspectStatus

class ProspectResponse(BaseModel):
    id: int
    campaign_id: int
    company_name: str
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    source: str
    source_id: Optional[str] = None
    tech_stack: Optional[Dict[str, Any]] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    contacts: List[ContactResponse] = []
    lead_score: Optional[LeadScoreResponse] = None

    class Config:
        from_attributes = True

class ProspectDetail(ProspectResponse):
    campaign: Optional[CampaignSummary] = None
    messages: List[OutreachMessageResponse] = []

class ProspectListResponse(BaseModel):
    prospects: List[ProspectResponse]
    total: int
    page: int
    total_pages: int

# --- 2. CONTACTS ---
class ContactCreate(BaseModel):
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    linkedin_url: Optional[HttpUrl] = None
    is_primary: bool = False

# --- 3. BULK IMPORT ---
class ImportRow(BaseModel):
    company_name: str = Field(min_length=1)
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_title: Optional[str] = None

class BulkImportRequest(BaseModel):
    campaign_id: int
    prospects: List[ImportRow]

class BulkImportResult(BaseModel):
    created: int
    failed: int
    errors: List[str]
