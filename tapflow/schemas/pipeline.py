from pydantic import BaseModel, Field
from typing import List, Literal, Optional

# --- MODEL OUTPUT: LEAD SCORE ---
class ScoreFactors(BaseModel):
    website_quality: int = Field(0, ge=0, le=20)
    contact_quality: int = Field(0, ge=0, le=20)
    business_fit: int = Field(0, ge=0, le=30)
    tech_fit: int = Field(0, ge=0, le=15)
    location_fit: int = Field(0, ge=0, le=15)

class ScoreResult(BaseModel):
    score: int = Field(ge=0, le=100)
    tier: Literal["A", "B", "C"]
    factors: ScoreFactors = Field(default_factory=ScoreFactors)
    notes: List[str] = []

# --- MODEL OUTPUT: EMAIL DRAFT ---
class EmailDraft(BaseModel):
    subject: str = Field(min_length=1)
    body: str = Field(min_length=1)
    personalization_notes: Optional[str] = None
