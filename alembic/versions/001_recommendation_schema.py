"""Initial catalog, tracking and recommendation schema

Creates the user and activity catalog tables plus the three tables
behind activity tracking: user_activity_logs, user_preferences and
ml_recommendations.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ===========================================
    # Users and catalog
    # ===========================================
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "subtopics",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "activity_id",
            sa.Integer(),
            sa.ForeignKey("activities.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        # 1-based position; 1 is the introductory subtopic
        sa.Column("order", sa.Integer(), nullable=False, server_default="1"),
    )

    op.create_table(
        "subtopic_completions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "subtopic_id",
            sa.Integer(),
            sa.ForeignKey("subtopics.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "completed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "user_id", "subtopic_id", name="uq_completion_user_subtopic"
        ),
    )

    # ===========================================
    # Activity tracking
    # ===========================================
    op.create_table(
        "user_activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id"),
            nullable=False,
            index=True,
        ),
        # Free-form tag: study_session, quiz, reading, ...
        sa.Column("activity_type", sa.String(50), nullable=False, index=True),
        sa.Column(
            "activity_id", sa.Integer(), sa.ForeignKey("activities.id"), nullable=True
        ),
        sa.Column(
            "subtopic_id", sa.Integer(), sa.ForeignKey("subtopics.id"), nullable=True
        ),
        # Measurements
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("completion_rate", sa.Float(), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        # Time tracking
        sa.Column(
            "start_time",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "metadata",
            sa.JSON(),
            nullable=False,
            server_default="{}",
        ),
    )

    op.create_index(
        "ix_user_activity_logs_start_time",
        "user_activity_logs",
        ["start_time"],
    )

    op.create_table(
        "user_preferences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("preferred_topics", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("preferred_time", sa.String(50), nullable=True),
        sa.Column("learning_style", sa.String(50), nullable=True),
        sa.Column("difficulty_level", sa.String(50), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # ===========================================
    # Recommendations (replaced per user on every run)
    # ===========================================
    op.create_table(
        "ml_recommendations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "activity_id",
            sa.Integer(),
            sa.ForeignKey("activities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "subtopic_id",
            sa.Integer(),
            sa.ForeignKey("subtopics.id", ondelete="SET NULL"),
            nullable=True,
        ),
        # next_topic, similar_content, group_suggestion
        sa.Column("recommendation_type", sa.String(30), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    op.drop_table("ml_recommendations")
    op.drop_table("user_preferences")
    op.drop_index("ix_user_activity_logs_start_time")
    op.drop_table("user_activity_logs")
    op.drop_table("subtopic_completions")
    op.drop_table("subtopics")
    op.drop_table("activities")
    op.drop_table("users")
