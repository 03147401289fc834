import logging
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from tapflow.core.config import settings
from tapflow.core.database import SessionLocal
from tapflow.models import OutreachMessage
from tapflow.services.email_service import EmailService
from tapflow.services.event_bus import bus, send_event

logger = logging.getLogger(__name__)

# Prospects still in these states move to 'contacted' once a message goes out
PRE_CONTACT_STATUSES = ("new", "enriched", "scored")


def day_start(now: datetime = None) -> datetime:
    """Midnight UTC of the day `now` falls in."""
    now = now or datetime.utcnow()
    return datetime.combine(now.date(), datetime.min.time())


def next_send_window(now: datetime = None) -> datetime:
    return day_start(now) + timedelta(days=1)


def check_daily_limit(db: Session, now: datetime = None) -> bool:
    """Returns True if we are UNDER the limit, False if we hit it."""
    sent_count = db.query(func.count(OutreachMessage.id)).filter(
        OutreachMessage.sent_at >= day_start(now)
    ).scalar() or 0

    if sent_count >= settings.DAILY_EMAIL_LIMIT:
        logger.warning(f"🚫 Daily Email Limit Reached: {sent_count}/{settings.DAILY_EMAIL_LIMIT}")
        return False

    return True


def claim_for_sending(db: Session, message_id: int) -> bool:
    """
    Moves the message from 'approved' to 'sending' in one conditional
    UPDATE. Only one run can win the row, so a message is never sent twice.
    """
    claimed = db.query(OutreachMessage).filter(
        OutreachMessage.id == message_id,
        OutreachMessage.status == "approved",
    ).update({"status": "sending", "updated_at": datetime.utcnow()}, synchronize_session=False)
    db.commit()
    return claimed == 1


@bus.function(id="outreach-sender", event="outreach/approved", concurrency=5, retries=3)
def send_outreach(db: Session, data: dict) -> dict:
    message_id = data["message_id"]

    message = db.query(OutreachMessage).get(message_id)
    if not message:
        # Rejected (deleted) after approval
        return {"message_id": message_id, "skipped": True, "reason": "not_found"}

    email_service = EmailService()
    if not email_service.configured:
        logger.info(f"No email provider configured, message {message_id} stays approved")
        return {"message_id": message_id, "skipped": True, "reason": "no_email_provider"}

    if not claim_for_sending(db, message_id):
        # Another run owns it, or it already left 'approved'
        return {"message_id": message_id, "skipped": True, "reason": f"status_{message.status}"}

    if not check_daily_limit(db):
        # Over the cap: park it for the scheduler to release tomorrow
        message.status = "scheduled"
        message.scheduled_for = next_send_window()
        db.commit()
        logger.info(f"⏳ Message {message_id} deferred to {message.scheduled_for.isoformat()}")
        return {
            "message_id": message_id,
            "deferred": True,
            "reason": "daily_limit",
            "scheduled_for": message.scheduled_for.isoformat(),
        }

    contact = message.contact
    if not contact or not contact.email:
        message.status = "failed"
        message.error_message = "No email address found"
        db.commit()
        return {"message_id": message_id, "sent": False, "reason": "no_email"}

    result = email_service.deliver(message, contact)

    if result.sent:
        message.status = "sent"
        message.sent_at = datetime.utcnow()
        message.error_message = None

        prospect = contact.prospect
        if prospect and prospect.status in PRE_CONTACT_STATUSES:
            prospect.status = "contacted"

        db.commit()
        logger.info(f"✅ Sent message {message_id} to {contact.email}")
        return {"message_id": message_id, "sent": True}

    if result.bounced:
        message.status = "bounced"
        message.error_message = result.error
        db.commit()
        return {"message_id": message_id, "sent": False, "reason": "bounced"}

    # Hand the row back so the retry can claim it again
    message.status = "approved"
    message.error_message = result.error
    db.commit()
    raise RuntimeError(f"Email send failed for message {message_id}: {result.error}")


def release_scheduled_messages(now: datetime = None) -> int:
    """
    Scheduler job: scheduled messages whose time has come become approved
    and are queued for sending.
    """
    now = now or datetime.utcnow()
    db = SessionLocal()
    try:
        due = db.query(OutreachMessage).filter(
            OutreachMessage.status == "scheduled",
            OutreachMessage.scheduled_for <= now,
        ).all()

        for message in due:
            message.status = "approved"
            send_event(db, "outreach/approved", {"message_id": message.id})

        db.commit()
        if due:
            logger.info(f"⏰ Released {len(due)} scheduled messages")
        return len(due)

    except Exception as e:
        logger.error(f"❌ Scheduler Error (scheduled outreach): {e}")
        db.rollback()
        return 0
    finally:
        db.close()
