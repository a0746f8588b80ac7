"""Initial schema

Revision ID: 7c1f4e2a9b30
Revises:
Create Date: 2026-10-19 09:12:44.218305

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7c1f4e2a9b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("user_id", sa.String(50), nullable=False, unique=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("is_paused", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_hidden", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"])

    op.create_table(
        "likes",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("sender_id", sa.String(50), nullable=False),
        sa.Column("receiver_id", sa.String(50), nullable=False),
        sa.Column("liked_content", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("sender_id", "receiver_id", name="uq_likes_pair"),
    )
    op.create_index("ix_likes_sender_created", "likes", ["sender_id", "created_at"])
    op.create_index("ix_likes_receiver_id", "likes", ["receiver_id"])

    op.create_table(
        "passes",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("user_id", sa.String(50), nullable=False),
        sa.Column("passed_user_id", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", "passed_user_id", name="uq_passes_pair"),
    )
    op.create_index("ix_passes_user_created", "passes", ["user_id", "created_at"])

    op.create_table(
        "daily_counters",
        sa.Column("user_id", sa.String(50), primary_key=True),
        sa.Column("kind", sa.String(20), primary_key=True),
        sa.Column("day", sa.String(10), primary_key=True),
        sa.Column("count", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "matches",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("user_low", sa.String(50), nullable=False),
        sa.Column("user_high", sa.String(50), nullable=False),
        sa.Column("chat_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("call_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("status", sa.String(20), nullable=True, server_default=sa.text("'active'")),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("initiated_by", sa.String(20), nullable=False, server_default=sa.text("'like'")),
        sa.Column("comment_id", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_low", "user_high", name="uq_matches_pair"),
    )
    op.create_index("ix_matches_user_low", "matches", ["user_low"])
    op.create_index("ix_matches_user_high", "matches", ["user_high"])

    op.create_table(
        "messages",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("match_id", sa.String(50), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sender_id", sa.String(50), nullable=False),
        sa.Column("receiver_id", sa.String(50), nullable=False),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column("media_url", sa.String(500), nullable=True),
        sa.Column("media_type", sa.String(20), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'sent'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("seen_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_messages_match_created", "messages", ["match_id", "created_at"])

    op.create_table(
        "blocks",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("blocker_id", sa.String(50), nullable=False),
        sa.Column("blocked_id", sa.String(50), nullable=False),
        sa.Column("reason", sa.String(200), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_blocks_pair"),
    )
    op.create_index("ix_blocks_blocker_id", "blocks", ["blocker_id"])
    op.create_index("ix_blocks_blocked_id", "blocks", ["blocked_id"])

    op.create_table(
        "boosts",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("user_id", sa.String(50), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_boosts_user_id", "boosts", ["user_id"])
    op.create_index("ix_boosts_active_end", "boosts", ["is_active", "end_time"])
    # at most one active boost per user
    op.create_index(
        "uq_boosts_one_active",
        "boosts",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active"),
    )

    op.create_table(
        "subscriptions",
        sa.Column("user_id", sa.String(50), primary_key=True),
        sa.Column("plan", sa.String(50), nullable=False, server_default=sa.text("'premium'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "profile_comments",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("sender_id", sa.String(50), nullable=False),
        sa.Column("receiver_id", sa.String(50), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("target_content", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_profile_comments_sender_id", "profile_comments", ["sender_id"])
    op.create_index("ix_profile_comments_receiver_id", "profile_comments", ["receiver_id"])
    op.create_index(
        "uq_profile_comments_pending",
        "profile_comments",
        ["sender_id", "receiver_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "notification_tokens",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("user_id", sa.String(50), nullable=False),
        sa.Column("token", sa.String(255), nullable=False, unique=True),
        sa.Column("platform", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_notification_tokens_user_id", "notification_tokens", ["user_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("notification_tokens")
    op.drop_table("profile_comments")
    op.drop_table("subscriptions")
    op.drop_table("boosts")
    op.drop_table("blocks")
    op.drop_table("messages")
    op.drop_table("matches")
    op.drop_table("daily_counters")
    op.drop_table("passes")
    op.drop_table("likes")
    op.drop_table("profiles")
