"""SQLAlchemy table definitions for the Pryvo backend."""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from pryvo.utils.helpers import utcnow


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class ProfileDB(Base):
    """
    Profile database model.

    The profile document is kept whole in `data` (camelCased, as clients send
    it). Flags used to filter discovery are mirrored into real columns.
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    is_paused: Mapped[bool] = mapped_column(Boolean, default=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class LikeDB(Base):
    """Like database model. One row per ordered (sender, receiver) pair."""

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("sender_id", "receiver_id", name="uq_likes_pair"),
        Index("ix_likes_sender_created", "sender_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    sender_id: Mapped[str] = mapped_column(String(50))
    receiver_id: Mapped[str] = mapped_column(String(50), index=True)
    liked_content: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class PassDB(Base):
    """Pass database model. One row per ordered (user, passed user) pair."""

    __tablename__ = "passes"
    __table_args__ = (
        UniqueConstraint("user_id", "passed_user_id", name="uq_passes_pair"),
        Index("ix_passes_user_created", "user_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(50))
    passed_user_id: Mapped[str] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class DailyCounterDB(Base):
    """Per-user, per-day usage counter. `kind` separates likes from comments."""

    __tablename__ = "daily_counters"

    user_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    kind: Mapped[str] = mapped_column(String(20), primary_key=True)
    day: Mapped[str] = mapped_column(String(10), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, default=0)


class MatchDB(Base):
    """Match database model. The pair is stored in canonical order."""

    __tablename__ = "matches"
    __table_args__ = (UniqueConstraint("user_low", "user_high", name="uq_matches_pair"),)

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_low: Mapped[str] = mapped_column(String(50), index=True)
    user_high: Mapped[str] = mapped_column(String(50), index=True)
    chat_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    call_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, default="active")
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    initiated_by: Mapped[str] = mapped_column(String(20), default="like")
    comment_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class MessageDB(Base):
    """Message database model."""

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_match_created", "match_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    match_id: Mapped[str] = mapped_column(String(50), ForeignKey("matches.id", ondelete="CASCADE"))
    sender_id: Mapped[str] = mapped_column(String(50))
    receiver_id: Mapped[str] = mapped_column(String(50))
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    media_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    media_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="sent")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    seen_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class BlockDB(Base):
    """Block database model. Directed edge, unique per ordered pair."""

    __tablename__ = "blocks"
    __table_args__ = (UniqueConstraint("blocker_id", "blocked_id", name="uq_blocks_pair"),)

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    blocker_id: Mapped[str] = mapped_column(String(50), index=True)
    blocked_id: Mapped[str] = mapped_column(String(50), index=True)
    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class BoostDB(Base):
    """Boost database model. At most one row per user may carry `is_active`."""

    __tablename__ = "boosts"
    __table_args__ = (
        Index(
            "uq_boosts_one_active",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
        Index("ix_boosts_active_end", "is_active", "end_time"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(50), index=True)
    start_time: Mapped[datetime] = mapped_column(DateTime)
    end_time: Mapped[datetime] = mapped_column(DateTime)
    duration_minutes: Mapped[int] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class SubscriptionDB(Base):
    """Premium subscription. A null `expires_at` never lapses."""

    __tablename__ = "subscriptions"

    user_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    plan: Mapped[str] = mapped_column(String(50), default="premium")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class ProfileCommentDB(Base):
    """Profile comment database model. One pending comment per ordered pair."""

    __tablename__ = "profile_comments"
    __table_args__ = (
        Index(
            "uq_profile_comments_pending",
            "sender_id",
            "receiver_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    sender_id: Mapped[str] = mapped_column(String(50), index=True)
    receiver_id: Mapped[str] = mapped_column(String(50), index=True)
    comment: Mapped[str] = mapped_column(Text)
    target_content: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class NotificationTokenDB(Base):
    """Push token registered by a client device."""

    __tablename__ = "notification_tokens"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(50), index=True)
    token: Mapped[str] = mapped_column(String(255), unique=True)
    platform: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
