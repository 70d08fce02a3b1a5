"""Match lifecycle rows."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Match(Base):
    """One pairing between two participants, plus its lifecycle state."""

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # stored with participant_a_id < participant_b_id, so the pair index is unordered
    participant_a_id: Mapped[int] = mapped_column(Integer, index=True)
    participant_b_id: Mapped[int] = mapped_column(Integer, index=True)

    # Approvals (mutual_approved is stored for querying, always recomputed on save)
    approved_by_a: Mapped[bool] = mapped_column(Boolean, default=False)
    approved_by_b: Mapped[bool] = mapped_column(Boolean, default=False)
    mutual_approved: Mapped[bool] = mapped_column(Boolean, default=False)

    status: Mapped[str] = mapped_column(String(30), default="NONE")
    freeze_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    restore_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    blocked_by_a: Mapped[bool] = mapped_column(Boolean, default=False)
    blocked_by_b: Mapped[bool] = mapped_column(Boolean, default=False)
    frozen_by_a: Mapped[bool] = mapped_column(Boolean, default=False)
    frozen_by_b: Mapped[bool] = mapped_column(Boolean, default=False)

    match_source: Mapped[str] = mapped_column(String(30), default="unknown")

    # Event linkage
    meeting_event_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    origin_event_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    match_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Conversation bookkeeping
    unread_count: Mapped[int] = mapped_column(Integer, default=0)
    read_by_a: Mapped[bool] = mapped_column(Boolean, default=True)
    read_by_b: Mapped[bool] = mapped_column(Boolean, default=True)
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    chat_opened: Mapped[bool] = mapped_column(Boolean, default=False)
    first_message_sent: Mapped[bool] = mapped_column(Boolean, default=False)

    # Optimistic concurrency counter
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    first_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_match_pair", "participant_a_id", "participant_b_id", unique=True),
        Index("ix_match_mutual", "mutual_approved"),
        Index("ix_match_meeting_event", "meeting_event_id"),
        Index("ix_match_origin_event", "origin_event_id"),
        CheckConstraint("participant_a_id < participant_b_id", name="ck_match_pair_order"),
    )
