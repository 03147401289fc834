from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from tapflow.core.database import SessionLocal
from tapflow.models import Organization


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_org(
    x_org_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Organization:
    """
    Resolves the caller's organization from the X-Org-Id header set by the
    auth gateway in front of this service.
    """
    if not x_org_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing organization")

    try:
        org_id = int(x_org_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid organization")

    org = db.query(Organization).filter(Organization.id == org_id).first()
    if not org:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid organization")

    return org
