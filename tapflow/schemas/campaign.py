from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Literal
from datetime import datetime

CampaignStatus = Literal["active", "paused", "completed", "draft"]

# --- 1. TARGETING ---
class IdealCustomerProfile(BaseModel):
    min_employees: Optional[int] = None
    max_employees: Optional[int] = None
    industries: Optional[List[str]] = None
    keywords: Optional[List[str]] = None

# --- 2. CREATE / UPDATE ---
class CampaignCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    business_type: str = Field(min_length=1)
    target_location: str = Field(min_length=1)
    search_radius_miles: Optional[int] = Field(None, ge=1, le=100)
    ideal_customer_profile: Optional[IdealCustomerProfile] = None

class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[CampaignStatus] = None
    business_type: Optional[str] = Field(None, min_length=1)
    target_location: Optional[str] = Field(None, min_length=1)

# --- 3. RESPONSES ---
class CampaignResponse(BaseModel):
    id: int
    org_id: int
    name: str
    business_type: str
    target_location: str
    search_radius_miles: Optional[int] = 25
    ideal_customer_profile: Optional[Dict[str, Any]] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CampaignListItem(CampaignResponse):
    prospect_count: int = 0

class CampaignStats(BaseModel):
    total_prospects: int
    by_tier: Dict[str, int]
    by_status: Dict[str, int]

class CampaignDetail(CampaignResponse):
    stats: CampaignStats
