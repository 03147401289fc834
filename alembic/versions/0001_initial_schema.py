"""initial lead pipeline schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-16
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("plan", sa.String()),
        sa.Column("created_at", sa.TIMESTAMP()),
    )
    op.create_index("ix_organizations_id", "organizations", ["id"])

    op.create_table(
        "campaigns",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("status", sa.String()),
        sa.Column("business_type", sa.String(), nullable=False),
        sa.Column("target_location", sa.String(), nullable=False),
        sa.Column("search_radius_miles", sa.Integer()),
        sa.Column("ideal_customer_profile", sa.JSON()),
        sa.Column("created_at", sa.TIMESTAMP()),
        sa.Column("updated_at", sa.TIMESTAMP()),
    )
    op.create_index("ix_campaigns_id", "campaigns", ["id"])
    op.create_index("ix_campaigns_org_id", "campaigns", ["org_id"])

    op.create_table(
        "prospects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("campaign_id", sa.Integer(), sa.ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_name", sa.String(), nullable=False),
        sa.Column("website", sa.Text()),
        sa.Column("phone", sa.String()),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.String()),
        sa.Column("state", sa.String()),
        sa.Column("zip", sa.String()),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("source_id", sa.String()),
        sa.Column("tech_stack", sa.JSON()),
        sa.Column("status", sa.String()),
        sa.Column("created_at", sa.TIMESTAMP()),
        sa.Column("updated_at", sa.TIMESTAMP()),
        sa.UniqueConstraint("campaign_id", "source", "source_id", name="uq_prospect_campaign_source"),
    )
    op.create_index("ix_prospects_id", "prospects", ["id"])
    op.create_index("ix_prospects_campaign_id", "prospects", ["campaign_id"])
    op.create_index("ix_prospects_status", "prospects", ["status"])

    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("prospect_id", sa.Integer(), sa.ForeignKey("prospects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String()),
        sa.Column("first_name", sa.String()),
        sa.Column("last_name", sa.String()),
        sa.Column("title", sa.String()),
        sa.Column("email", sa.String()),
        sa.Column("email_verified", sa.Boolean()),
        sa.Column("phone", sa.String()),
        sa.Column("linkedin_url", sa.String()),
        sa.Column("is_primary", sa.Boolean()),
        sa.Column("source", sa.String()),
        sa.Column("created_at", sa.TIMESTAMP()),
    )
    op.create_index("ix_contacts_id", "contacts", ["id"])
    op.create_index("ix_contacts_prospect_id", "contacts", ["prospect_id"])

    op.create_table(
        "lead_scores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("prospect_id", sa.Integer(), sa.ForeignKey("prospects.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("tier", sa.String(1), nullable=False),
        sa.Column("scoring_factors", sa.JSON()),
        sa.Column("model_version", sa.String()),
        sa.Column("scored_at", sa.TIMESTAMP()),
        sa.Column("created_at", sa.TIMESTAMP()),
    )
    op.create_index("ix_lead_scores_id", "lead_scores", ["id"])

    op.create_table(
        "outreach_messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("contact_id", sa.Integer(), sa.ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("campaign_id", sa.Integer(), sa.ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("status", sa.String()),
        sa.Column("sequence_step", sa.Integer()),
        sa.Column("personalization_data", sa.JSON()),
        sa.Column("scheduled_for", sa.TIMESTAMP()),
        sa.Column("sent_at", sa.TIMESTAMP()),
        sa.Column("opened_at", sa.TIMESTAMP()),
        sa.Column("replied_at", sa.TIMESTAMP()),
        sa.Column("error_message", sa.Text()),
        sa.Column("created_at", sa.TIMESTAMP()),
        sa.Column("updated_at", sa.TIMESTAMP()),
    )
    op.create_index("ix_outreach_messages_id", "outreach_messages", ["id"])
    op.create_index("ix_outreach_messages_contact_id", "outreach_messages", ["contact_id"])
    op.create_index("ix_outreach_messages_campaign_id", "outreach_messages", ["campaign_id"])
    op.create_index("ix_outreach_messages_status", "outreach_messages", ["status"])

    op.create_table(
        "pipeline_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("payload", sa.JSON()),
        sa.Column("function_id", sa.String()),
        sa.Column("status", sa.String()),
        sa.Column("attempts", sa.Integer()),
        sa.Column("max_retries", sa.Integer()),
        sa.Column("next_attempt_at", sa.TIMESTAMP()),
        sa.Column("last_error", sa.Text()),
        sa.Column("result", sa.JSON()),
        sa.Column("started_at", sa.TIMESTAMP()),
        sa.Column("finished_at", sa.TIMESTAMP()),
        sa.Column("created_at", sa.TIMESTAMP()),
    )
    op.create_index("ix_pipeline_events_id", "pipeline_events", ["id"])
    op.create_index("ix_pipeline_events_name", "pipeline_events", ["name"])
    op.create_index("ix_pipeline_events_function_id", "pipeline_events", ["function_id"])
    op.create_index("ix_pipeline_events_status", "pipeline_events", ["status"])

    op.create_table(
        "ai_usage_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("task_type", sa.String()),
        sa.Column("model_name", sa.String()),
        sa.Column("input_tokens", sa.Integer()),
        sa.Column("output_tokens", sa.Integer()),
        sa.Column("total_tokens", sa.Integer()),
        sa.Column("estimated_cost", sa.Float()),
        sa.Column("related_prospect_id", sa.Integer()),
        sa.Column("status", sa.String()),
        sa.Column("created_at", sa.TIMESTAMP()),
    )
    op.create_index("ix_ai_usage_logs_id", "ai_usage_logs", ["id"])


def downgrade():
    op.drop_table("ai_usage_logs")
    op.drop_table("pipeline_events")
    op.drop_table("outreach_messages")
    op.drop_table("lead_scores")
    op.drop_table("contacts")
    op.drop_table("prospects")
    op.drop_table("campaigns")
    op.drop_table("organizations")
