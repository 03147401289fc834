"""
Tests for outreach delivery
The outreach-sender function, the daily cap and scheduled release.
"""
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from tapflow.core.config import settings
from tapflow.models import OutreachMessage, PipelineEvent
from tapflow.services.email_service import DeliveryResult
from tapflow.services.event_bus import send_event
from tapflow.services.outreach_service import OutreachService
from tapflow.workers.pipeline import bus
from tapflow.workers.pipeline.outreach_sender import (
    check_daily_limit,
    day_start,
    next_send_window,
    release_scheduled_messages,
    send_outreach,
)

DELIVER = "tapflow.workers.pipeline.outreach_sender.EmailService.deliver"


@pytest.fixture
def email_configured(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_API_KEY", "test-key")
    monkeypatch.setattr(settings, "EMAIL_FROM_ADDRESS", "hello@tapflow.io")


@pytest.fixture
def approved_message(make_prospect, db):
    def _make(status="approved", **kwargs):
        prospect = kwargs.pop("prospect", None) or make_prospect()
        message = OutreachMessage(
            contact_id=prospect.primary_contact.id,
            campaign_id=prospect.campaign_id,
            subject="Quick question",
            body="Hi Anna,\nShort note.",
            status=status,
            **kwargs,
        )
        db.add(message)
        db.commit()
        db.refresh(message)
        return message
    return _make


class TestSendOutreach:
    """Tests for the outreach-sender handler."""

    def test_sent_marks_message_and_prospect(self, approved_message, email_configured, db):
        message = approved_message()

        with patch(DELIVER, return_value=DeliveryResult(sent=True)) as deliver:
            out = send_outreach(db, {"message_id": message.id})

        assert out == {"message_id": message.id, "sent": True}
        sent_message, contact = deliver.call_args.args
        assert sent_message.id == message.id
        assert contact.email == "anna@brightsmiles.com"

        db.refresh(message)
        assert message.status == "sent"
        assert message.sent_at is not None
        assert message.contact.prospect.status == "contacted"

    def test_bounce_is_terminal(self, approved_message, email_configured, db):
        message = approved_message()

        with patch(DELIVER, return_value=DeliveryResult(sent=False, bounced=True, error="550 user unknown")):
            out = send_outreach(db, {"message_id": message.id})

        assert out["reason"] == "bounced"
        db.refresh(message)
        assert message.status == "bounced"
        assert message.error_message == "550 user unknown"

    def test_transient_error_hands_message_back_for_retry(self, approved_message, email_configured, db):
        message = approved_message()

        with patch(DELIVER, return_value=DeliveryResult(sent=False, error="Timeout: read timed out")):
            with pytest.raises(RuntimeError):
                send_outreach(db, {"message_id": message.id})

        db.refresh(message)
        assert message.status == "approved"
        assert message.error_message.startswith("Timeout")

    def test_without_provider_stays_approved(self, approved_message, db):
        message = approved_message()

        with patch(DELIVER) as deliver:
            out = send_outreach(db, {"message_id": message.id})

        deliver.assert_not_called()
        assert out["reason"] == "no_email_provider"
        db.refresh(message)
        assert message.status == "approved"

    def test_rejected_message_is_skipped(self, email_configured, db):
        out = send_outreach(db, {"message_id": 12345})

        assert out["reason"] == "not_found"

    def test_only_approved_messages_go_out(self, approved_message, email_configured, db):
        message = approved_message(status="pending_approval")

        with patch(DELIVER) as deliver:
            out = send_outreach(db, {"message_id": message.id})

        deliver.assert_not_called()
        assert out["reason"] == "status_pending_approval"

    def test_message_already_sending_is_not_sent_again(self, approved_message, email_configured, db):
        """Test that a row claimed by another run is left to that run."""
        message = approved_message(status="sending")

        with patch(DELIVER) as deliver:
            out = send_outreach(db, {"message_id": message.id})

        deliver.assert_not_called()
        assert out["reason"] == "status_sending"

    def test_duplicate_runs_send_once(self, approved_message, email_configured, db):
        """Test that two queued runs for one message deliver it exactly once."""
        message = approved_message()
        send_event(db, "outreach/approved", {"message_id": message.id})
        send_event(db, "outreach/approved", {"message_id": message.id})
        db.commit()

        with patch(DELIVER, return_value=DeliveryResult(sent=True)) as deliver:
            bus.drain()

        assert deliver.call_count == 1
        results = [
            r.result for r in db.query(PipelineEvent)
            .filter(PipelineEvent.function_id == "outreach-sender")
            .order_by(PipelineEvent.id).all()
        ]
        assert results[0] == {"message_id": message.id, "sent": True}
        assert results[1]["reason"] == "status_sent"


class TestDailyLimit:
    """Tests for the DAILY_EMAIL_LIMIT window."""

    def test_window_is_utc_day(self):
        now = datetime(2026, 3, 9, 23, 30)

        assert day_start(now) == datetime(2026, 3, 9)
        assert next_send_window(now) == datetime(2026, 3, 10)

    def test_yesterdays_sends_do_not_count(self, approved_message, monkeypatch, db):
        monkeypatch.setattr(settings, "DAILY_EMAIL_LIMIT", 1)
        now = datetime(2026, 3, 9, 0, 5)
        approved_message(status="sent", sent_at=datetime(2026, 3, 8, 23, 55))

        assert check_daily_limit(db, now=now) is True
        assert check_daily_limit(db, now=datetime(2026, 3, 8, 23, 59)) is False

    def test_over_cap_message_is_deferred_not_dropped(self, approved_message, make_prospect,
                                                     email_configured, monkeypatch, db):
        monkeypatch.setattr(settings, "DAILY_EMAIL_LIMIT", 1)
        approved_message(status="sent", sent_at=datetime.utcnow())
        message = approved_message(prospect=make_prospect(company_name="Second Clinic", email="bo@second.com"))

        with patch(DELIVER) as deliver:
            out = send_outreach(db, {"message_id": message.id})

        deliver.assert_not_called()
        assert out["deferred"] is True
        assert out["reason"] == "daily_limit"
        db.refresh(message)
        assert message.status == "scheduled"
        assert message.scheduled_for == next_send_window()

    def test_deferred_message_sent_after_window_rolls_over(self, approved_message, make_prospect,
                                                          email_configured, monkeypatch, db):
        """Test the full path: cap hit, deferred, released next day, delivered."""
        monkeypatch.setattr(settings, "DAILY_EMAIL_LIMIT", 1)
        earlier = approved_message(status="sent", sent_at=datetime.utcnow())
        message = approved_message(
            status="pending_approval",
            prospect=make_prospect(company_name="Second Clinic", email="bo@second.com"),
        )
        OutreachService(db, message.campaign.org_id).approve(message.id)

        with patch(DELIVER) as deliver:
            bus.drain()
        deliver.assert_not_called()

        db.refresh(message)
        assert message.status == "scheduled"
        tomorrow = message.scheduled_for + timedelta(minutes=1)

        # The next day: yesterday's send no longer counts against the cap
        earlier.sent_at = datetime.utcnow() - timedelta(days=1)
        db.commit()

        assert release_scheduled_messages(now=tomorrow) == 1

        with patch(DELIVER, return_value=DeliveryResult(sent=True)) as deliver:
            bus.drain()

        deliver.assert_called_once()
        db.refresh(message)
        assert message.status == "sent"


class TestScheduledRelease:
    """Tests for the scheduled outreach job."""

    def test_due_messages_released(self, approved_message, db):
        due = approved_message(status="scheduled", scheduled_for=datetime.utcnow() - timedelta(minutes=5))
        later = approved_message(status="scheduled", scheduled_for=datetime.utcnow() + timedelta(days=1))

        assert release_scheduled_messages() == 1

        db.expire_all()
        assert db.query(OutreachMessage).get(due.id).status == "approved"
        assert db.query(OutreachMessage).get(later.id).status == "scheduled"

        event = db.query(PipelineEvent).filter(PipelineEvent.name == "outreach/approved").one()
        assert event.payload == {"message_id": due.id}
        assert event.function_id == "outreach-sender"
