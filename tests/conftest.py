import os

# Must be set before anything from tapflow is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
for key in ("LLM_API_KEY", "HUNTER_API_KEY", "EMAIL_API_KEY", "EMAIL_FROM_ADDRESS", "EVENT_WEBHOOK_SECRET"):
    os.environ.pop(key, None)

import pytest
from fastapi.testclient import TestClient

from tapflow.main import app
from tapflow.core.database import Base, SessionLocal, engine
from tapflow.models import Organization, Campaign, Prospect, Contact


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def org(db):
    org = Organization(name="Acme Agency", plan="growth")
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


@pytest.fixture
def campaign(db, org):
    campaign = Campaign(
        org_id=org.id,
        name="Dentists - Austin",
        business_type="dentist",
        target_location="Austin, TX",
        status="active",
    )
    db.add(campaign)
    db.commit()
    db.refresh(campaign)
    return campaign


@pytest.fixture
def make_prospect(db, campaign):
    def _make(company_name="Bright Smiles", website="https://brightsmiles.com", email="anna@brightsmiles.com",
              status="new", **kwargs):
        prospect = Prospect(
            campaign_id=kwargs.pop("campaign_id", campaign.id),
            company_name=company_name,
            website=website,
            source="manual",
            status=status,
            **kwargs,
        )
        db.add(prospect)
        db.flush()

        if email:
            db.add(Contact(
                prospect_id=prospect.id,
                name="Anna Lee",
                first_name="Anna",
                title="Owner",
                email=email,
                is_primary=True,
                source="manual",
            ))

        db.commit()
        db.refresh(prospect)
        return prospect
    return _make


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def headers(org):
    return {"X-Org-Id": str(org.id)}
