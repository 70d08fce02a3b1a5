from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from matchcore.lifecycle.errors import InvalidTransition, TerminalStateViolation
from matchcore.lifecycle.snapshot import MatchSnapshot, MatchStatus, ParticipantId


def _now():
    return datetime.now(timezone.utc)


def register_message(
    snapshot: MatchSnapshot,
    sender_id: ParticipantId,
    now: Optional[datetime] = None,
) -> MatchSnapshot:
    """
    Conversation bookkeeping for one sent message. The message itself is
    stored by the messaging subsystem; status is left alone (OPEN_CHAT moves
    a match to ACTIVE). Only MUTUAL and ACTIVE matches can carry messages.
    """
    if snapshot.is_archived:
        raise TerminalStateViolation(snapshot.match_id, "register_message")
    side = snapshot.side_of(sender_id)
    if snapshot.status not in (MatchStatus.MUTUAL, MatchStatus.ACTIVE):
        raise InvalidTransition(snapshot.status, "register_message")
    now = now or _now()

    return replace(
        snapshot,
        chat_opened=True,
        first_message_sent=True,
        last_message_at=now,
        unread_count=snapshot.unread_count + 1,
        read_by_a=(side == "a"),
        read_by_b=(side == "b"),
        updated_at=now,
    )


def mark_read(snapshot: MatchSnapshot, reader_id: ParticipantId) -> MatchSnapshot:
    if snapshot.is_archived:
        raise TerminalStateViolation(snapshot.match_id, "mark_read")
    if snapshot.side_of(reader_id) == "a":
        nxt = replace(snapshot, read_by_a=True)
    else:
        nxt = replace(snapshot, read_by_b=True)

    if nxt.read_by_a and nxt.read_by_b:
        nxt = replace(nxt, unread_count=0)
    return nxt


def mark_seen(
    snapshot: MatchSnapshot,
    viewer_id: ParticipantId,
    now: Optional[datetime] = None,
) -> MatchSnapshot:
    """Stamps `first_seen_at` the first time a participant is shown the match."""
    snapshot.side_of(viewer_id)
    if snapshot.first_seen_at is not None:
        return snapshot
    return replace(snapshot, first_seen_at=now or _now())
