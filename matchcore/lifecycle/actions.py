import enum
from dataclasses import dataclass
from typing import Optional

from matchcore.lifecycle.errors import UnrecognizedAction
from matchcore.lifecycle.snapshot import ParticipantId


class MatchAction(str, enum.Enum):
    """Closed set of actions a match can be resolved against.

    Member values double as the audit action and the first segment of the
    feedback stable code.
    """

    LIKE = "MATCH_LIKED"
    CONFIRM_MUTUAL = "MATCH_MUTUAL_CONFIRMED"
    OPEN_CHAT = "MATCH_CHAT_OPENED"
    FREEZE = "MATCH_FROZEN"
    UNFREEZE = "MATCH_UNFROZEN"
    BLOCK = "MATCH_BLOCKED"
    UNBLOCK = "MATCH_UNBLOCKED"
    ARCHIVE = "MATCH_ARCHIVED"
    UPDATE = "MATCH_UPDATED"

    @classmethod
    def parse(cls, tag) -> "MatchAction":
        if isinstance(tag, cls):
            return tag
        if not isinstance(tag, str):
            raise UnrecognizedAction(tag)
        key = tag.strip().upper()
        for action in cls:
            if key == action.name or key == action.value:
                return action
        raise UnrecognizedAction(tag)


@dataclass(frozen=True)
class ActionRequest:
    """
    One requested change to a match.

    `actor_id` is always a participant of the match: administrators and
    automated rules act on behalf of one side, and `source` tells them apart.
    `approve` is read by UPDATE only (None means "re-derive, change nothing").
    `event_id` is read by LIKE: the event the pair met at this time.
    """

    action: MatchAction
    actor_id: ParticipantId
    source: Optional[str] = None
    mode: Optional[str] = None
    reason: Optional[str] = None
    approve: Optional[bool] = None
    event_id: Optional[int] = None

    @property
    def clean_reason(self) -> Optional[str]:
        if self.reason is None or not self.reason.strip():
            return None
        return self.reason.strip()
