import enum
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional, Union

from matchcore.lifecycle.errors import ActorNotInRelationship, InvalidSnapshot

ParticipantId = Union[int, str]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MatchStatus(str, enum.Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    MUTUAL = "MUTUAL"
    ACTIVE = "ACTIVE"
    FROZEN = "FROZEN"
    BLOCKED = "BLOCKED"
    ARCHIVED = "ARCHIVED"


# statuses a FREEZE/BLOCK can be undone back to
RESTORABLE = frozenset({
    MatchStatus.NONE,
    MatchStatus.PENDING,
    MatchStatus.MUTUAL,
    MatchStatus.ACTIVE,
})


@dataclass(frozen=True)
class MatchSnapshot:
    """
    Immutable view of one match between two participants.

    The pair is stored in a stable order (A, B) but every lookup treats it as
    unordered. `mutual_approved` is derived from the two approval flags and
    cannot be set on its own.
    """

    participant_a: ParticipantId
    participant_b: ParticipantId

    approved_by_a: bool = False
    approved_by_b: bool = False

    status: MatchStatus = MatchStatus.NONE
    freeze_reason: Optional[str] = None
    restore_status: Optional[MatchStatus] = None

    # who placed the current suspension; both sides may hold one
    blocked_by_a: bool = False
    blocked_by_b: bool = False
    frozen_by_a: bool = False
    frozen_by_b: bool = False

    match_source: str = "unknown"

    # event the pair last met at, and the first one (never changes)
    meeting_event_id: Optional[int] = None
    origin_event_id: Optional[int] = None
    match_score: Optional[float] = None

    # conversation bookkeeping, owned by the messaging side
    unread_count: int = 0
    read_by_a: bool = True
    read_by_b: bool = True
    last_message_at: Optional[datetime] = None
    chat_opened: bool = False
    first_message_sent: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    first_seen_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    match_id: Optional[int] = None
    version: int = 0

    def __post_init__(self):
        if self.participant_a == self.participant_b:
            raise InvalidSnapshot(
                f"Participant {self.participant_a} cannot be matched with themselves"
            )
        if self.freeze_reason and self.status != MatchStatus.FROZEN:
            raise InvalidSnapshot(f"freeze_reason set while status is {self.status.value}")
        if self.restore_status is not None and self.restore_status not in RESTORABLE:
            raise InvalidSnapshot(f"Cannot restore to {self.restore_status.value}")
        if (self.blocked_by_a or self.blocked_by_b) and self.status != MatchStatus.BLOCKED:
            raise InvalidSnapshot(f"block flags set while status is {self.status.value}")
        if (self.frozen_by_a or self.frozen_by_b) and self.status != MatchStatus.FROZEN:
            raise InvalidSnapshot(f"freeze flags set while status is {self.status.value}")

    @classmethod
    def open(
        cls,
        participant_a: ParticipantId,
        participant_b: ParticipantId,
        source: str = "unknown",
        now: Optional[datetime] = None,
        meeting_event_id: Optional[int] = None,
        match_score: Optional[float] = None,
    ) -> "MatchSnapshot":
        now = now or _now()
        return cls(
            participant_a=participant_a,
            participant_b=participant_b,
            match_source=source,
            meeting_event_id=meeting_event_id,
            origin_event_id=meeting_event_id,
            match_score=match_score,
            created_at=now,
            updated_at=now,
        )

    @property
    def mutual_approved(self) -> bool:
        return self.approved_by_a and self.approved_by_b

    @property
    def is_archived(self) -> bool:
        return self.status == MatchStatus.ARCHIVED

    def involves(self, pid: ParticipantId) -> bool:
        return pid == self.participant_a or pid == self.participant_b

    def involves_both(self, x: ParticipantId, y: ParticipantId) -> bool:
        return {x, y} == {self.participant_a, self.participant_b}

    def side_of(self, pid: ParticipantId) -> str:
        """Returns "a" or "b" for a participant of this match."""
        if pid == self.participant_a:
            return "a"
        if pid == self.participant_b:
            return "b"
        raise ActorNotInRelationship(pid, self.match_id)

    def other(self, pid: ParticipantId) -> ParticipantId:
        if self.side_of(pid) == "a":
            return self.participant_b
        return self.participant_a

    def approved_by(self, pid: ParticipantId) -> bool:
        if self.side_of(pid) == "a":
            return self.approved_by_a
        return self.approved_by_b

    def blocked_by(self, pid: ParticipantId) -> bool:
        if self.side_of(pid) == "a":
            return self.blocked_by_a
        return self.blocked_by_b

    def frozen_by(self, pid: ParticipantId) -> bool:
        if self.side_of(pid) == "a":
            return self.frozen_by_a
        return self.frozen_by_b

    def met_at(self, event_id: int) -> "MatchSnapshot":
        """Records another meeting; the first event stays the origin."""
        return replace(
            self,
            meeting_event_id=event_id,
            origin_event_id=self.origin_event_id if self.origin_event_id is not None else event_id,
        )
