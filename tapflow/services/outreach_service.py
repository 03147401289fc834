import math
from datetime import datetime, timezone
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func

from tapflow.models import Campaign, Contact, OutreachMessage, Prospect
from tapflow.schemas.outreach import MessageCreate, MessageUpdate
from tapflow.services.event_bus import send_event

# Content can only be edited before a message is approved
EDITABLE_STATUSES = ("draft", "pending_approval")
# Approving twice would queue a second send
APPROVABLE_STATUSES = ("draft", "pending_approval")

STAT_STATUSES = (
    "draft", "pending_approval", "approved", "sent", "delivered",
    "opened", "clicked", "replied", "bounced",
)


class InvalidTransition(Exception):
    """Raised when a message is asked to move out of a status it cannot leave."""


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole > 0 else 0.0


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class OutreachService:
    def __init__(self, db: Session, org_id: int):
        self.db = db
        self.org_id = org_id

    def _scoped(self):
        return (
            self.db.query(OutreachMessage)
            .join(Campaign, Campaign.id == OutreachMessage.campaign_id)
            .filter(Campaign.org_id == self.org_id)
        )

    # ---------------------------------------------------------
    # 1. READ
    # ---------------------------------------------------------
    def list_messages(self, campaign_id: int = None, status: str = None, page: int = 1, limit: int = 25):
        query = self._scoped()
        if campaign_id:
            query = query.filter(OutreachMessage.campaign_id == campaign_id)
        if status:
            query = query.filter(OutreachMessage.status == status)

        total = query.count()
        messages = (
            query.options(joinedload(OutreachMessage.contact).joinedload(Contact.prospect))
            .order_by(OutreachMessage.created_at.desc(), OutreachMessage.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        return {
            "messages": messages,
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def pending_approval(self, campaign_id: int = None):
        """Approval queue, oldest first."""
        query = self._scoped().filter(OutreachMessage.status == "pending_approval")
        if campaign_id:
            query = query.filter(OutreachMessage.campaign_id == campaign_id)

        return (
            query.options(
                joinedload(OutreachMessage.contact).joinedload(Contact.prospect).joinedload(Prospect.lead_score)
            )
            .order_by(OutreachMessage.created_at.asc(), OutreachMessage.id.asc())
            .all()
        )

    def get_message(self, message_id: int):
        return self._scoped().filter(OutreachMessage.id == message_id).first()

    def stats(self, campaign_id: int = None):
        query = (
            self.db.query(OutreachMessage.status, func.count(OutreachMessage.id))
            .join(Campaign, Campaign.id == OutreachMessage.campaign_id)
            .filter(Campaign.org_id == self.org_id)
        )
        if campaign_id:
            query = query.filter(OutreachMessage.campaign_id == campaign_id)

        counts = dict(query.group_by(OutreachMessage.status).all())

        stats = {"total": sum(counts.values())}
        for status in STAT_STATUSES:
            stats[status] = counts.get(status, 0)

        stats["open_rate"] = _rate(stats["opened"], stats["sent"])
        stats["click_rate"] = _rate(stats["clicked"], stats["opened"])
        stats["reply_rate"] = _rate(stats["replied"], stats["sent"])
        stats["bounce_rate"] = _rate(stats["bounced"], stats["sent"])
        return stats

    # ---------------------------------------------------------
    # 2. WRITE
    # ---------------------------------------------------------
    def create_message(self, data: MessageCreate):
        """Manual draft. Returns None if the contact or campaign is outside the org."""
        campaign = self.db.query(Campaign).filter(
            Campaign.id == data.campaign_id, Campaign.org_id == self.org_id
        ).first()
        if not campaign:
            return None

        contact = (
            self.db.query(Contact)
            .join(Prospect, Prospect.id == Contact.prospect_id)
            .join(Campaign, Campaign.id == Prospect.campaign_id)
            .filter(Contact.id == data.contact_id, Campaign.org_id == self.org_id)
            .first()
        )
        if not contact:
            return None

        message = OutreachMessage(
            contact_id=contact.id,
            campaign_id=campaign.id,
            subject=data.subject,
            body=data.body,
            sequence_step=data.sequence_step,
            status="draft",
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def update_message(self, message_id: int, data: MessageUpdate):
        message = self.get_message(message_id)
        if not message:
            return None

        if message.status not in EDITABLE_STATUSES:
            raise InvalidTransition(f"Cannot edit a message in status '{message.status}'")

        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(message, key, value)

        self.db.commit()
        self.db.refresh(message)
        return message

    def approve(self, message_id: int, scheduled_for: datetime = None):
        """
        With a schedule the message waits for the scheduler job; without one
        it goes straight to the sender.
        """
        message = self.get_message(message_id)
        if not message:
            return None

        if message.status not in APPROVABLE_STATUSES:
            raise InvalidTransition(f"Cannot approve a message in status '{message.status}'")

        if scheduled_for:
            message.status = "scheduled"
            message.scheduled_for = _naive_utc(scheduled_for)
        else:
            message.status = "approved"
            message.scheduled_for = None
            send_event(self.db, "outreach/approved", {"message_id": message.id})

        self.db.commit()
        self.db.refresh(message)
        return message

    def bulk_approve(self, ids: list[int]) -> int:
        if not ids:
            return 0

        messages = self._scoped().filter(
            OutreachMessage.id.in_(ids),
            OutreachMessage.status.in_(APPROVABLE_STATUSES),
        ).all()

        for message in messages:
            message.status = "approved"
            message.scheduled_for = None
            send_event(self.db, "outreach/approved", {"message_id": message.id})

        self.db.commit()
        return len(messages)

    def reject(self, message_id: int) -> bool:
        """Rejecting discards the message."""
        message = self.get_message(message_id)
        if not message:
            return False

        self.db.delete(message)
        self.db.commit()
        return True
