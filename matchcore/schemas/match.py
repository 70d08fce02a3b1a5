from datetime import datetime

from pydantic import BaseModel

from matchcore.lifecycle.actions import MatchAction
from matchcore.lifecycle.context import ActorClass, OperatingContext
from matchcore.lifecycle.policy import Effect, NotificationKind, Severity
from matchcore.lifecycle.snapshot import MatchStatus


class MatchSnapshotOut(BaseModel):
    match_id: int | None = None
    participant_a: int | str
    participant_b: int | str
    approved_by_a: bool
    approved_by_b: bool
    mutual_approved: bool
    status: MatchStatus
    freeze_reason: str | None = None
    restore_status: MatchStatus | None = None
    blocked_by_a: bool = False
    blocked_by_b: bool = False
    frozen_by_a: bool = False
    frozen_by_b: bool = False
    match_source: str
    meeting_event_id: int | None = None
    origin_event_id: int | None = None
    match_score: float | None = None
    unread_count: int = 0
    chat_opened: bool = False
    first_message_sent: bool = False
    last_message_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    first_seen_at: datetime | None = None
    archived_at: datetime | None = None
    version: int = 0

    class Config:
        from_attributes = True


class FeedbackOut(BaseModel):
    snapshot: MatchSnapshotOut
    actor_id: int | str
    other_participant_id: int | str
    message_for_actor: str
    message_for_other_side: str
    stable_code: str
    severity: Severity
    effect: Effect
    suggested_notification: NotificationKind | None = None
    audit_action: MatchAction
    mode: OperatingContext
    actor_class: ActorClass
    before_status: MatchStatus | None = None
    after_status: MatchStatus
    became_mutual_now: bool = False
    mutual_broken_now: bool = False
    changed: bool = True
    extras: dict[str, str] = {}

    class Config:
        from_attributes = True


class NotificationPayload(BaseModel):
    """What the notification pipeline gets for the other side of a match."""

    recipient_id: int | str
    kind: NotificationKind
    match_id: int | None = None
    stable_code: str
    message: str
    severity: Severity

    @classmethod
    def from_envelope(cls, envelope) -> "NotificationPayload | None":
        if envelope.suggested_notification is None:
            return None
        return cls(
            recipient_id=envelope.other_participant_id,
            kind=envelope.suggested_notification,
            match_id=envelope.snapshot.match_id,
            stable_code=envelope.stable_code,
            message=envelope.message_for_other_side,
            severity=envelope.severity,
        )


class AuditRecord(BaseModel):
    audit_action: MatchAction
    match_id: int | None = None
    actor_id: int | str
    actor_class: ActorClass
    stable_code: str
    extras: dict[str, str]

    @classmethod
    def from_envelope(cls, envelope) -> "AuditRecord":
        return cls(
            audit_action=envelope.audit_action,
            match_id=envelope.snapshot.match_id,
            actor_id=envelope.actor_id,
            actor_class=envelope.actor_class,
            stable_code=envelope.stable_code,
            extras=envelope.extras,
        )
