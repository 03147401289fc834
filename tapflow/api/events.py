from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from tapflow.api.deps import get_db
from tapflow.core.config import settings
from tapflow.models import PipelineEvent
from tapflow.services.event_bus import bus
from tapflow.schemas.event import (
    EventIn,
    EventSendResult,
    FunctionRegistry,
    EventRunResponse,
)

router = APIRouter(prefix="/api/events", tags=["Events"])


def verify_event_secret(x_event_secret: Optional[str] = Header(None)):
    # Only enforced when a secret is configured
    if settings.EVENT_WEBHOOK_SECRET and x_event_secret != settings.EVENT_WEBHOOK_SECRET:
        raise HTTPException(status_code=401, detail="Invalid event secret")


# ---------------------------------------------------------
# REGISTRY
# ---------------------------------------------------------
@router.get("", response_model=FunctionRegistry)
def list_functions():
    return {
        "functions": [
            {"id": f.id, "event": f.event, "concurrency": f.concurrency, "retries": f.retries}
            for f in bus.functions
        ]
    }


# ---------------------------------------------------------
# SEND
# ---------------------------------------------------------
@router.post("", response_model=EventSendResult, dependencies=[Depends(verify_event_secret)])
def send_events(payload: Union[EventIn, List[EventIn]], db: Session = Depends(get_db)):
    events = payload if isinstance(payload, list) else [payload]

    rows = []
    for event in events:
        rows.extend(bus.send(db, event.name, event.data))

    db.commit()
    return {"ids": [row.id for row in rows]}


# ---------------------------------------------------------
# DISPATCH
# ---------------------------------------------------------
@router.put("", dependencies=[Depends(verify_event_secret)])
def trigger_dispatch(inline: bool = Query(False)):
    executed = bus.dispatch(inline=inline)
    return {"executed": executed}


# ---------------------------------------------------------
# RUNS
# ---------------------------------------------------------
@router.get("/runs", response_model=List[EventRunResponse], dependencies=[Depends(verify_event_secret)])
def list_runs(
    status: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    query = db.query(PipelineEvent)
    if status:
        query = query.filter(PipelineEvent.status == status)
    if name:
        query = query.filter(PipelineEvent.name == name)

    return query.order_by(PipelineEvent.id.desc()).limit(limit).all()
