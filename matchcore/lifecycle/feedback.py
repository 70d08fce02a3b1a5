from dataclasses import dataclass, field
from typing import Optional

from matchcore.lifecycle.actions import MatchAction
from matchcore.lifecycle.context import ActorClass, OperatingContext, classify_mode
from matchcore.lifecycle.errors import ActorNotInRelationship
from matchcore.lifecycle.policy import (
    BECAME_MUTUAL_POLICY,
    Effect,
    NotificationKind,
    Severity,
    action_policy,
    messages_for,
    mutual_broken_messages_for,
    mutual_messages_for,
)
from matchcore.lifecycle.snapshot import MatchSnapshot, MatchStatus, ParticipantId


@dataclass(frozen=True)
class FeedbackEnvelope:
    """
    Everything the outside world needs after one match transition: wording
    for both sides, a stable code the client can branch on, UI hints, a
    suggested notification for the other side and the audit record.
    """

    snapshot: MatchSnapshot
    actor_id: ParticipantId
    other_participant_id: ParticipantId

    message_for_actor: str
    message_for_other_side: str
    stable_code: str

    severity: Severity
    effect: Effect
    suggested_notification: Optional[NotificationKind]
    audit_action: MatchAction

    mode: OperatingContext
    actor_class: ActorClass
    before_status: Optional[MatchStatus]
    after_status: MatchStatus

    became_mutual_now: bool = False
    mutual_broken_now: bool = False
    changed: bool = True
    extras: dict[str, str] = field(default_factory=dict)


def stable_code(action: MatchAction, context: OperatingContext, actor_class: ActorClass) -> str:
    return f"{action.value}_{context.name}_{actor_class.name}"


def build_feedback(
    snapshot: MatchSnapshot,
    actor_id: ParticipantId,
    action: MatchAction,
    context: OperatingContext = OperatingContext.NONE,
    actor_class: ActorClass = ActorClass.PARTICIPANT,
    before_status: Optional[MatchStatus] = None,
    reason: Optional[str] = None,
    became_mutual_now: bool = False,
    mutual_broken_now: bool = False,
    changed: bool = True,
) -> FeedbackEnvelope:
    """
    Builds the feedback envelope for a transition that already happened.

    `snapshot` is the state after the transition. The mutual flags win over
    any action/context wording: becoming mutual always reads as a success
    banner, losing mutuality always reads as a warning.
    A repeat that changed nothing (`changed=False`) suggests no notification,
    so the other side is not told the same thing twice.
    """
    if not snapshot.involves(actor_id):
        raise ActorNotInRelationship(actor_id, snapshot.match_id)
    if became_mutual_now and mutual_broken_now:
        raise ValueError("A transition cannot both create and break mutual approval")

    action = MatchAction.parse(action)
    context = classify_mode(context)
    if isinstance(actor_class, str):
        actor_class = actor_class.strip().upper()
    actor_class = ActorClass(actor_class)
    other_id = snapshot.other(actor_id)
    after_status = snapshot.status

    policy = action_policy(action)
    severity = policy.severity
    effect = policy.effect
    notification = policy.notification
    messages = messages_for(action, context, actor_class)

    if became_mutual_now:
        severity = BECAME_MUTUAL_POLICY.severity
        effect = BECAME_MUTUAL_POLICY.effect
        notification = BECAME_MUTUAL_POLICY.notification
        messages = mutual_messages_for(context, actor_class)
    elif mutual_broken_now:
        severity = Severity.WARNING
        notification = NotificationKind.CLOSED
        messages = mutual_broken_messages_for(actor_class)
    if not changed:
        notification = None

    extras = {
        "action": action.value,
        "mode": context.name,
        "sourceContext": actor_class.name,
        "beforeStatus": before_status.value if before_status is not None else "",
        "afterStatus": after_status.value,
    }
    if reason is not None and reason.strip():
        extras["reason"] = reason.strip()
    if became_mutual_now:
        extras["becameMutualNow"] = "true"
    if mutual_broken_now:
        extras["mutualBrokenNow"] = "true"

    return FeedbackEnvelope(
        snapshot=snapshot,
        actor_id=actor_id,
        other_participant_id=other_id,
        message_for_actor=messages.actor,
        message_for_other_side=messages.other,
        stable_code=stable_code(action, context, actor_class),
        severity=severity,
        effect=effect,
        suggested_notification=notification,
        audit_action=action,
        mode=context,
        actor_class=actor_class,
        before_status=before_status,
        after_status=after_status,
        became_mutual_now=became_mutual_now,
        mutual_broken_now=mutual_broken_now,
        changed=changed,
        extras=extras,
    )
