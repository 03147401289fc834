from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime

# Small nested shapes shared by the lead and outreach responses

class CampaignSummary(BaseModel):
    id: int
    name: str
    business_type: Optional[str] = None

    class Config:
        from_attributes = True

class ProspectSummary(BaseModel):
    id: int
    campaign_id: int
    company_name: str
    website: Optional[str] = None
    status: Optional[str] = None

    class Config:
        from_attributes = True

class ContactResponse(BaseModel):
    id: int
    prospect_id: int
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[str] = None
    email_verified: Optional[bool] = False
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    is_primary: Optional[bool] = False
    source: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class LeadScoreResponse(BaseModel):
    score: int
    tier: str
    scoring_factors: Optional[Dict[str, Any]] = None
    model_version: Optional[str] = None
    scored_at: Optional[datetime] = None

    class Config:
        from_attributes = True
