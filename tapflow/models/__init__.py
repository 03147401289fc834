from .organization import Organization
from .campaign import Campaign
from .prospect import Prospect
from .contact import Contact
from .lead_score import LeadScore
from .outreach_message import OutreachMessage
from .pipeline_event import PipelineEvent
from .ai_usage import AIUsageLog

__all__ = [
    "Organization",
    "Campaign",
    "Prospect",
    "Contact",
    "LeadScore",
    "OutreachMessage",
    "PipelineEvent",
    "AIUsageLog",
]
