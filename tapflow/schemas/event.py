from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime

class EventIn(BaseModel):
    name: str = Field(min_length=1) # e.g. 'campaign/created'
    data: Dict[str, Any] = {}

class EventSendResult(BaseModel):
    ids: List[int]

class FunctionInfo(BaseModel):
    id: str
    event: str
    concurrency: int
    retries: int

class FunctionRegistry(BaseModel):
    functions: List[FunctionInfo]

class EventRunResponse(BaseModel):
    id: int
    name: str
    payload: Optional[Dict[str, Any]] = None
    function_id: Optional[str] = None
    status: str
    attempts: int = 0
    max_retries: int = 0
    last_error: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    class Config:
        from_attributes = True
