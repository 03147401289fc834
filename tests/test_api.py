"""
Integration Tests for the HTTP API
Campaigns, leads, outreach and the event webhook over TestClient.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from tapflow.core.config import settings
from tapflow.models import Campaign, LeadScore, Organization, OutreachMessage, PipelineEvent
from tapflow.workers.pipeline import bus


def _create_campaign(client, headers, **overrides):
    payload = {
        "name": "Dentists - Austin",
        "business_type": "dentist",
        "target_location": "Austin, TX",
    }
    payload.update(overrides)
    response = client.post("/api/campaigns", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def pending_message(make_prospect, db):
    prospect = make_prospect()
    message = OutreachMessage(
        contact_id=prospect.primary_contact.id,
        campaign_id=prospect.campaign_id,
        subject="Quick question about Bright Smiles",
        body="Hi Anna,",
        status="pending_approval",
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


class TestOrgScoping:
    """Tests for the X-Org-Id header."""

    def test_missing_header_is_401(self, client):
        assert client.get("/api/campaigns").status_code == 401

    def test_unknown_org_is_401(self, client, org):
        assert client.get("/api/campaigns", headers={"X-Org-Id": "999"}).status_code == 401
        assert client.get("/api/campaigns", headers={"X-Org-Id": "abc"}).status_code == 401

    def test_other_org_cannot_see_campaign(self, client, campaign, db):
        other = Organization(name="Other Agency")
        db.add(other)
        db.commit()

        response = client.get(f"/api/campaigns/{campaign.id}", headers={"X-Org-Id": str(other.id)})

        assert response.status_code == 404


class TestCampaigns:
    """Tests for /api/campaigns."""

    def test_create_emits_campaign_created(self, client, headers, db):
        body = _create_campaign(client, headers, ideal_customer_profile={"keywords": ["implants"]})

        assert body["status"] == "active"
        assert body["search_radius_miles"] == 25
        assert body["ideal_customer_profile"] == {"keywords": ["implants"]}

        event = db.query(PipelineEvent).filter(PipelineEvent.name == "campaign/created").one()
        assert event.function_id == "discovery-agent"
        assert event.payload["campaign_id"] == body["id"]

    def test_create_validates_radius(self, client, headers):
        response = client.post("/api/campaigns", json={
            "name": "Too wide", "business_type": "dentist",
            "target_location": "Austin, TX", "search_radius_miles": 500,
        }, headers=headers)

        assert response.status_code == 422

    def test_list_and_detail_after_pipeline(self, client, headers):
        created = _create_campaign(client, headers)
        bus.drain()

        listed = client.get("/api/campaigns", headers=headers).json()
        assert listed[0]["id"] == created["id"]
        assert listed[0]["prospect_count"] == 2

        detail = client.get(f"/api/campaigns/{created['id']}", headers=headers).json()
        assert detail["stats"]["total_prospects"] == 2
        assert detail["stats"]["by_tier"] == {"A": 2, "B": 0, "C": 0}
        assert detail["stats"]["by_status"] == {"scored": 2}

    def test_update(self, client, headers, campaign):
        response = client.patch(f"/api/campaigns/{campaign.id}", json={"status": "paused"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["status"] == "paused"
        assert response.json()["name"] == "Dentists - Austin"

    def test_delete_cascades(self, client, headers, campaign, make_prospect, db):
        make_prospect()

        response = client.delete(f"/api/campaigns/{campaign.id}", headers=headers)

        assert response.status_code == 200
        db.expire_all()
        assert db.query(Campaign).count() == 0
        assert client.get("/api/leads", headers=headers).json()["total"] == 0


class TestLeads:
    """Tests for /api/leads."""

    def test_list_filters_by_tier_before_paging(self, client, headers, make_prospect, db):
        hot = make_prospect(company_name="Hot")
        cold = make_prospect(company_name="Cold", email="x@cold.com")
        db.add_all([
            LeadScore(prospect_id=hot.id, score=90, tier="A"),
            LeadScore(prospect_id=cold.id, score=20, tier="C"),
        ])
        db.commit()

        body = client.get("/api/leads", params={"tier": "A", "limit": 1}, headers=headers).json()

        assert body["total"] == 1
        assert body["total_pages"] == 1
        assert [p["company_name"] for p in body["prospects"]] == ["Hot"]
        assert body["prospects"][0]["lead_score"]["tier"] == "A"

    def test_pagination(self, client, headers, make_prospect):
        for i in range(3):
            make_prospect(company_name=f"Clinic {i}", email=None)

        body = client.get("/api/leads", params={"page": 2, "limit": 2}, headers=headers).json()

        assert body["total"] == 3
        assert body["page"] == 2
        assert body["total_pages"] == 2
        assert len(body["prospects"]) == 1

    def test_create_manual(self, client, headers, campaign):
        response = client.post("/api/leads", json={
            "campaign_id": campaign.id,
            "company_name": "Walk-in Dental",
            "website": "https://walkin.dental",
        }, headers=headers)

        assert response.status_code == 201
        body = response.json()
        assert body["source"] == "manual"
        assert body["status"] == "new"
        assert body["website"].startswith("https://walkin.dental")

    def test_create_in_foreign_campaign_is_404(self, client, headers, db):
        other = Organization(name="Other")
        db.add(other)
        db.flush()
        foreign = Campaign(org_id=other.id, name="x", business_type="y", target_location="z")
        db.add(foreign)
        db.commit()

        response = client.post("/api/leads", json={"campaign_id": foreign.id, "company_name": "Nope"}, headers=headers)

        assert response.status_code == 404

    def test_detail_includes_messages_and_campaign(self, client, headers, pending_message):
        prospect_id = pending_message.contact.prospect_id

        body = client.get(f"/api/leads/{prospect_id}", headers=headers).json()

        assert body["campaign"]["business_type"] == "dentist"
        assert body["contacts"][0]["email"] == "anna@brightsmiles.com"
        assert [m["id"] for m in body["messages"]] == [pending_message.id]

    def test_update_status(self, client, headers, make_prospect):
        prospect = make_prospect()

        response = client.patch(f"/api/leads/{prospect.id}/status", json={"status": "replied"}, headers=headers)
        assert response.json()["status"] == "replied"

        bad = client.patch(f"/api/leads/{prospect.id}/status", json={"status": "lost"}, headers=headers)
        assert bad.status_code == 422

    def test_add_contact(self, client, headers, make_prospect):
        prospect = make_prospect(email=None)

        response = client.post(f"/api/leads/{prospect.id}/contacts", json={
            "name": "Dr. Ray Patel",
            "email": "Ray@BrightSmiles.com",
            "is_primary": True,
        }, headers=headers)

        assert response.status_code == 201
        assert response.json()["email"] == "ray@brightsmiles.com"
        assert response.json()["source"] == "manual"

    def test_bulk_import(self, client, headers, campaign):
        response = client.post("/api/leads/import", json={
            "campaign_id": campaign.id,
            "prospects": [
                {"company_name": "A Dental", "contact_name": "Al", "contact_email": "al@adental.com"},
                {"company_name": "B Dental"},
            ],
        }, headers=headers)

        assert response.json() == {"created": 2, "failed": 0, "errors": []}

        leads = client.get("/api/leads", headers=headers).json()["prospects"]
        by_name = {p["company_name"]: p for p in leads}
        assert by_name["A Dental"]["source"] == "import"
        assert by_name["A Dental"]["contacts"][0]["is_primary"] is True
        assert by_name["B Dental"]["contacts"] == []

    def test_delete(self, client, headers, make_prospect):
        prospect = make_prospect()

        assert client.delete(f"/api/leads/{prospect.id}", headers=headers).status_code == 200
        assert client.get(f"/api/leads/{prospect.id}", headers=headers).status_code == 404


class TestOutreach:
    """Tests for /api/outreach."""

    def test_pending_queue(self, client, headers, pending_message):
        body = client.get("/api/outreach/pending", headers=headers).json()

        assert len(body) == 1
        assert body[0]["contact"]["prospect"]["company_name"] == "Bright Smiles"
        assert body[0]["campaign"]["name"] == "Dentists - Austin"

    def test_approve_without_schedule(self, client, headers, pending_message, db):
        response = client.post(f"/api/outreach/{pending_message.id}/approve", json={}, headers=headers)

        assert response.status_code == 200
        assert response.json()["status"] == "approved"

        event = db.query(PipelineEvent).filter(PipelineEvent.name == "outreach/approved").one()
        assert event.payload == {"message_id": pending_message.id}

    def test_approve_with_schedule(self, client, headers, pending_message, db):
        when = datetime.now(timezone.utc) + timedelta(days=1)

        response = client.post(
            f"/api/outreach/{pending_message.id}/approve",
            json={"scheduled_for": when.isoformat()},
            headers=headers,
        )

        assert response.json()["status"] == "scheduled"
        assert response.json()["scheduled_for"] is not None
        assert db.query(PipelineEvent).filter(PipelineEvent.name == "outreach/approved").count() == 0

    def test_reject_deletes(self, client, headers, pending_message, db):
        response = client.post(f"/api/outreach/{pending_message.id}/reject", headers=headers)

        assert response.json() == {"success": True}
        db.expire_all()
        assert db.query(OutreachMessage).count() == 0
        assert client.get(f"/api/outreach/{pending_message.id}", headers=headers).status_code == 404

    def test_bulk_approve(self, client, headers, pending_message):
        response = client.post("/api/outreach/bulk-approve", json={"ids": [pending_message.id, 999]}, headers=headers)

        assert response.json() == {"approved": 1}

    def test_approving_twice_queues_one_send(self, client, headers, pending_message, db):
        """Test that a repeated approve is refused instead of queueing another send."""
        first = client.post(f"/api/outreach/{pending_message.id}/approve", json={}, headers=headers)
        second = client.post(f"/api/outreach/{pending_message.id}/approve", json={}, headers=headers)

        assert first.status_code == 200
        assert second.status_code == 409
        assert db.query(PipelineEvent).filter(PipelineEvent.name == "outreach/approved").count() == 1

    def test_bulk_approve_skips_already_approved(self, client, headers, pending_message, db):
        client.post(f"/api/outreach/{pending_message.id}/approve", json={}, headers=headers)

        response = client.post("/api/outreach/bulk-approve", json={"ids": [pending_message.id]}, headers=headers)

        assert response.json() == {"approved": 0}
        assert db.query(PipelineEvent).filter(PipelineEvent.name == "outreach/approved").count() == 1

    def test_edit_only_before_approval(self, client, headers, pending_message):
        ok = client.patch(f"/api/outreach/{pending_message.id}", json={"subject": "New subject"}, headers=headers)
        assert ok.json()["subject"] == "New subject"

        client.post(f"/api/outreach/{pending_message.id}/approve", headers=headers)
        locked = client.patch(f"/api/outreach/{pending_message.id}", json={"subject": "Too late"}, headers=headers)
        assert locked.status_code == 409

    def test_create_draft(self, client, headers, make_prospect):
        prospect = make_prospect()

        response = client.post("/api/outreach", json={
            "contact_id": prospect.primary_contact.id,
            "campaign_id": prospect.campaign_id,
            "subject": "Hello",
            "body": "Hi there",
        }, headers=headers)

        assert response.status_code == 201
        assert response.json()["status"] == "draft"

    def test_stats(self, client, headers, pending_message, make_prospect, db):
        prospect = make_prospect(company_name="Other", email="b@other.com")
        for status in ("sent", "sent", "opened", "bounced"):
            db.add(OutreachMessage(
                contact_id=prospect.primary_contact.id,
                campaign_id=prospect.campaign_id,
                subject="s", body="b", status=status,
            ))
        db.commit()

        body = client.get("/api/outreach/stats", headers=headers).json()

        assert body["total"] == 5
        assert body["pending_approval"] == 1
        assert body["sent"] == 2
        assert body["open_rate"] == 50.0
        assert body["bounce_rate"] == 50.0
        assert body["click_rate"] == 0.0

    def test_list_by_status(self, client, headers, pending_message):
        body = client.get("/api/outreach", params={"status": "pending_approval"}, headers=headers).json()

        assert body["total"] == 1
        assert body["messages"][0]["contact"]["email"] == "anna@brightsmiles.com"


class TestEventWebhook:
    """Tests for /api/events."""

    def test_registry(self, client):
        body = client.get("/api/events").json()

        ids = {f["id"] for f in body["functions"]}
        assert ids == {"discovery-agent", "enrichment-agent", "scoring-agent", "content-agent", "outreach-sender"}

    def test_send_single_and_batch(self, client, campaign):
        single = client.post("/api/events", json={"name": "campaign/created", "data": {"campaign_id": campaign.id}})
        batch = client.post("/api/events", json=[
            {"name": "nobody/listens", "data": {}},
            {"name": "outreach/generated", "data": {"message_id": 1}},
        ])

        assert single.status_code == 200
        assert len(single.json()["ids"]) == 1
        assert len(batch.json()["ids"]) == 2

    def test_secret_enforced_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "EVENT_WEBHOOK_SECRET", "s3cret")

        denied = client.post("/api/events", json={"name": "x/y", "data": {}})
        allowed = client.post("/api/events", json={"name": "x/y", "data": {}}, headers={"X-Event-Secret": "s3cret"})

        assert denied.status_code == 401
        assert allowed.status_code == 200

    def test_runs_require_secret_when_configured(self, client, monkeypatch):
        """Test that run history is behind the same secret as the webhook."""
        monkeypatch.setattr(settings, "EVENT_WEBHOOK_SECRET", "s3cret")

        denied = client.get("/api/events/runs")
        wrong = client.get("/api/events/runs", headers={"X-Event-Secret": "guess"})
        allowed = client.get("/api/events/runs", headers={"X-Event-Secret": "s3cret"})

        assert denied.status_code == 401
        assert wrong.status_code == 401
        assert allowed.status_code == 200
        assert allowed.json() == []

    def test_dispatch_and_runs(self, client, campaign):
        client.post("/api/events", json={"name": "campaign/created", "data": {"campaign_id": campaign.id}})

        response = client.put("/api/events", params={"inline": True})
        assert response.json() == {"executed": 1}

        runs = client.get("/api/events/runs", params={"status": "completed"}).json()
        assert runs[0]["function_id"] == "discovery-agent"
        assert runs[0]["result"] == {"campaign_id": campaign.id, "prospects_found": 2}


def test_root(client):
    assert client.get("/").json() == {"status": "running"}


def test_database_error_is_generic_500(client, headers):
    error = OperationalError("SELECT 1", {}, Exception("connection lost"))

    with patch("tapflow.api.campaigns.CampaignService.list_campaigns", side_effect=error):
        response = client.get("/api/campaigns", headers=headers)

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
