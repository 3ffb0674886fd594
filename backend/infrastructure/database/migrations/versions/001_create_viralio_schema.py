"""Create planner, billing and CMS mirror tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("business_name", sa.String(length=255), nullable=True),
        sa.Column("business_category", sa.String(length=100), nullable=True),
        sa.Column("target_audience", sa.Text(), nullable=True),
        sa.Column("persona", sa.Text(), nullable=True),
        sa.Column("monthly_goal_short", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("monthly_goal_long", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("tier", sa.String(length=20), nullable=False, server_default="free"),
        sa.Column("has_unlimited_free", sa.Boolean(), nullable=False, server_default="false"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"])
    op.create_index("ix_profiles_role", "profiles", ["role"])
    op.create_index("ix_profiles_tier", "profiles", ["tier"])

    op.create_table(
        "social_links",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("profile_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("url", sa.String(length=500), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_social_links_profile_id", "social_links", ["profile_id"])

    op.create_table(
        "task_categories",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#3b82f6"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_task_categories_user_id", "task_categories", ["user_id"])

    op.create_table(
        "tasks",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("niche", sa.String(length=100), nullable=True),
        sa.Column("format", sa.String(length=50), nullable=False, server_default="Kratka Forma"),
        sa.Column("hook", sa.Text(), nullable=True),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("cta", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="idea"),
        sa.Column("publish_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("original_template", sa.String(length=500), nullable=True),
        sa.Column("cover_image_url", sa.String(length=1000), nullable=True),
        sa.Column("result_views", sa.String(length=100), nullable=True),
        sa.Column("result_engagement", sa.String(length=100), nullable=True),
        sa.Column("result_conversions", sa.String(length=100), nullable=True),
        sa.Column("analysis", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("is_admin_case_study", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("cms_id", sa.String(length=255), nullable=True),
        sa.Column("category_id", postgresql.UUID(as_uuid=False), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cms_id"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["task_categories.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_tasks_user_created", "tasks", ["user_id", "created_at"])
    op.create_index("ix_tasks_case_study", "tasks", ["is_admin_case_study"])

    op.create_table(
        "inspiration_links",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("task_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("link", sa.String(length=1000), nullable=False),
        sa.Column("display_url", sa.String(length=1000), nullable=True),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="link"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_inspiration_links_task_id", "inspiration_links", ["task_id"])

    op.create_table(
        "competitors",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=1000), nullable=False),
        sa.Column("icon", sa.String(length=500), nullable=True),
        sa.Column("niche", sa.String(length=100), nullable=True),
        sa.Column("feed", sa.JSON(), nullable=False, server_default="[]"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_competitors_user_id", "competitors", ["user_id"])

    op.create_table(
        "templates",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("format", sa.String(length=50), nullable=False),
        sa.Column("views_potential", sa.String(length=100), nullable=True),
        sa.Column("concept", sa.Text(), nullable=True),
        sa.Column("structure", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("vlads_tip", sa.Text(), nullable=True),
        sa.Column("niche", sa.String(length=100), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_templates_title_format", "templates", ["title", "format"])

    op.create_table(
        "template_visibility",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("template_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("tier", sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["template_id"], ["templates.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("template_id", "tier", name="uq_template_visibility_template_tier"),
    )
    op.create_index("ix_template_visibility_template_id", "template_visibility", ["template_id"])

    op.create_table(
        "payments",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="eur"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("subscription_period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tier_at_payment", sa.String(length=20), nullable=False),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_payments_user_status_created", "payments", ["user_id", "status", "created_at"]
    )
    op.create_index("ix_payments_stripe_subscription_id", "payments", ["stripe_subscription_id"])

    op.create_table(
        "ai_credits",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("credits_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("reset_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "month", "year", name="uq_ai_credits_user_month_year"),
    )


def downgrade() -> None:
    op.drop_table("ai_credits")
    op.drop_index("ix_payments_stripe_subscription_id", table_name="payments")
    op.drop_index("ix_payments_user_status_created", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_template_visibility_template_id", table_name="template_visibility")
    op.drop_table("template_visibility")
    op.drop_index("ix_templates_title_format", table_name="templates")
    op.drop_table("templates")
    op.drop_index("ix_competitors_user_id", table_name="competitors")
    op.drop_table("competitors")
    op.drop_index("ix_inspiration_links_task_id", table_name="inspiration_links")
    op.drop_table("inspiration_links")
    op.drop_index("ix_tasks_case_study", table_name="tasks")
    op.drop_index("ix_tasks_user_created", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_task_categories_user_id", table_name="task_categories")
    op.drop_table("task_categories")
    op.drop_index("ix_social_links_profile_id", table_name="social_links")
    op.drop_table("social_links")
    op.drop_index("ix_profiles_tier", table_name="profiles")
    op.drop_index("ix_profiles_role", table_name="profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")
