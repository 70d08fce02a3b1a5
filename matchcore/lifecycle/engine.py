from dataclasses import replace
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from matchcore.lifecycle.actions import ActionRequest, MatchAction
from matchcore.lifecycle.context import ActorClass, classify
from matchcore.lifecycle.errors import (
    InvalidTransition,
    SuspendedByOtherSide,
    TerminalStateViolation,
    UnrecognizedAction,
)
from matchcore.lifecycle.snapshot import MatchSnapshot, MatchStatus


def _now():
    return datetime.now(timezone.utc)


class Resolution(NamedTuple):
    snapshot: MatchSnapshot
    became_mutual_now: bool
    mutual_broken_now: bool


def derive_status(snap: MatchSnapshot) -> MatchStatus:
    """Status implied by the approval flags and chat bookkeeping alone."""
    if snap.mutual_approved:
        if snap.chat_opened or snap.first_message_sent:
            return MatchStatus.ACTIVE
        return MatchStatus.MUTUAL
    return MatchStatus.PENDING


def restore_target(snap: MatchSnapshot) -> MatchStatus:
    if snap.restore_status is not None:
        return snap.restore_status
    return MatchStatus.ACTIVE if snap.mutual_approved else MatchStatus.PENDING


def is_noop(before: MatchSnapshot, after: MatchSnapshot) -> bool:
    """True when a resolution changed nothing but the timestamp."""
    return replace(after, updated_at=before.updated_at) == before


def _with_approval(snap: MatchSnapshot, actor_id, approved: bool) -> MatchSnapshot:
    if snap.side_of(actor_id) == "a":
        return replace(snap, approved_by_a=approved)
    return replace(snap, approved_by_b=approved)


def _with_side_flag(snap: MatchSnapshot, kind: str, actor_id, value: bool) -> MatchSnapshot:
    side = snap.side_of(actor_id)
    return replace(snap, **{f"{kind}_by_{side}": value})


def _require(snap: MatchSnapshot, action: MatchAction, *allowed: MatchStatus):
    if snap.status not in allowed:
        raise InvalidTransition(snap.status, action)


def _is_admin(req: ActionRequest) -> bool:
    return classify(req.source) == ActorClass.ADMIN_OR_SYSTEM


def _lift(snap: MatchSnapshot, req: ActionRequest, kind: str, action: MatchAction):
    """
    Clears the actor's side of a freeze or block. Returns the snapshot and
    whether the suspension is gone.

    Administrators clear both sides. A participant may only clear their own
    side; a suspension nobody is recorded for can be lifted by either side.
    """
    mine = getattr(snap, f"{kind}_by_{snap.side_of(req.actor_id)}")
    theirs = getattr(snap, f"{kind}_by_{snap.side_of(snap.other(req.actor_id))}")

    if _is_admin(req):
        return replace(snap, **{f"{kind}_by_a": False, f"{kind}_by_b": False}), True
    if theirs and not mine:
        raise SuspendedByOtherSide(snap.status, action, req.actor_id)
    return _with_side_flag(snap, kind, req.actor_id, False), not theirs


def _like(snap, req, now):
    if snap.status in (MatchStatus.MUTUAL, MatchStatus.ACTIVE):
        nxt = snap
    else:
        _require(snap, MatchAction.LIKE, MatchStatus.NONE, MatchStatus.PENDING)
        nxt = _with_approval(snap, req.actor_id, True)
        nxt = replace(nxt, status=derive_status(nxt))
    if req.event_id is not None and req.event_id != nxt.meeting_event_id:
        nxt = nxt.met_at(req.event_id)
    return nxt


def _confirm_mutual(snap, req, now):
    _require(
        snap, MatchAction.CONFIRM_MUTUAL,
        MatchStatus.NONE, MatchStatus.PENDING, MatchStatus.MUTUAL, MatchStatus.ACTIVE,
    )
    nxt = replace(snap, approved_by_a=True, approved_by_b=True)
    return replace(nxt, status=derive_status(nxt))


def _open_chat(snap, req, now):
    if snap.status == MatchStatus.ACTIVE:
        return snap
    _require(snap, MatchAction.OPEN_CHAT, MatchStatus.MUTUAL)
    return replace(
        snap,
        status=MatchStatus.ACTIVE,
        chat_opened=True,
        first_message_sent=True,
    )


def _freeze(snap, req, now):
    if snap.status == MatchStatus.FROZEN:
        # the other side joins an existing freeze
        if snap.frozen_by(req.actor_id):
            return snap
        nxt = _with_side_flag(snap, "frozen", req.actor_id, True)
        return replace(nxt, freeze_reason=req.clean_reason or snap.freeze_reason)

    _require(
        snap, MatchAction.FREEZE,
        MatchStatus.PENDING, MatchStatus.MUTUAL, MatchStatus.ACTIVE,
    )
    nxt = replace(
        snap,
        status=MatchStatus.FROZEN,
        restore_status=snap.status,
        freeze_reason=req.clean_reason,
    )
    return _with_side_flag(nxt, "frozen", req.actor_id, True)


def _unfreeze(snap, req, now):
    _require(snap, MatchAction.UNFREEZE, MatchStatus.FROZEN)
    nxt, lifted = _lift(snap, req, "frozen", MatchAction.UNFREEZE)
    if not lifted:
        return nxt
    return replace(
        nxt,
        status=restore_target(nxt),
        restore_status=None,
        freeze_reason=None,
    )


def _block(snap, req, now):
    if snap.status == MatchStatus.BLOCKED:
        if snap.blocked_by(req.actor_id):
            return snap
        return _with_side_flag(snap, "blocked", req.actor_id, True)

    # blocking a frozen match keeps the pre-freeze target and replaces the freeze
    if snap.status == MatchStatus.FROZEN:
        restore = snap.restore_status
    else:
        restore = snap.status
    nxt = replace(
        snap,
        status=MatchStatus.BLOCKED,
        restore_status=restore,
        freeze_reason=None,
        frozen_by_a=False,
        frozen_by_b=False,
    )
    return _with_side_flag(nxt, "blocked", req.actor_id, True)


def _unblock(snap, req, now):
    _require(snap, MatchAction.UNBLOCK, MatchStatus.BLOCKED)
    nxt, lifted = _lift(snap, req, "blocked", MatchAction.UNBLOCK)
    if not lifted:
        return nxt
    return replace(nxt, status=restore_target(nxt), restore_status=None)


def _archive(snap, req, now):
    return replace(
        snap,
        status=MatchStatus.ARCHIVED,
        archived_at=now,
        freeze_reason=None,
        restore_status=None,
        blocked_by_a=False,
        blocked_by_b=False,
        frozen_by_a=False,
        frozen_by_b=False,
    )


def _update(snap, req, now):
    _require(
        snap, MatchAction.UPDATE,
        MatchStatus.PENDING, MatchStatus.MUTUAL, MatchStatus.ACTIVE,
        MatchStatus.FROZEN, MatchStatus.BLOCKED,
    )
    nxt = snap
    if req.approve is not None:
        nxt = _with_approval(snap, req.actor_id, req.approve)

    derived = derive_status(nxt)
    if nxt.status in (MatchStatus.FROZEN, MatchStatus.BLOCKED):
        return replace(nxt, restore_status=derived)
    return replace(nxt, status=derived)


_HANDLERS = {
    MatchAction.LIKE: _like,
    MatchAction.CONFIRM_MUTUAL: _confirm_mutual,
    MatchAction.OPEN_CHAT: _open_chat,
    MatchAction.FREEZE: _freeze,
    MatchAction.UNFREEZE: _unfreeze,
    MatchAction.BLOCK: _block,
    MatchAction.UNBLOCK: _unblock,
    MatchAction.ARCHIVE: _archive,
    MatchAction.UPDATE: _update,
}


def resolve(
    snapshot: MatchSnapshot,
    request: ActionRequest,
    now: Optional[datetime] = None,
) -> Resolution:
    """
    Applies one action to a snapshot and returns the new snapshot with the
    mutual-approval transition flags.

    The input snapshot is never modified. Raises TerminalStateViolation for
    archived matches, UnrecognizedAction for unknown actions,
    ActorNotInRelationship when `request.actor_id` is not a participant and
    InvalidTransition when the action is not allowed from the current status
    (SuspendedByOtherSide when a participant tries to lift the other side's
    freeze or block).
    """
    action = MatchAction.parse(request.action)
    if snapshot.is_archived:
        raise TerminalStateViolation(snapshot.match_id, action.value)

    handler = _HANDLERS.get(action)
    if handler is None:
        raise UnrecognizedAction(action)

    snapshot.side_of(request.actor_id)
    now = now or _now()

    nxt = replace(handler(snapshot, request, now), updated_at=now)

    before = snapshot.mutual_approved
    after = nxt.mutual_approved
    return Resolution(
        snapshot=nxt,
        became_mutual_now=not before and after,
        mutual_broken_now=before and not after,
    )
