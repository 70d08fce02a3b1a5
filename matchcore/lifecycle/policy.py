"""
Feedback policy for match transitions.

Lookup tables keyed by action, operating context and actor class. Every
action has a NONE-context row that also serves any context without a row of
its own. Administrator/system actors always get the impersonal row.
"""

import enum
from dataclasses import dataclass
from typing import NamedTuple, Optional

from matchcore.lifecycle.actions import MatchAction
from matchcore.lifecycle.context import ActorClass, OperatingContext


class Severity(str, enum.Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Effect(str, enum.Enum):
    NONE = "NONE"
    REFRESH_LISTS = "REFRESH_LISTS"
    MOVE_TO_ARCHIVE = "MOVE_TO_ARCHIVE"
    REMOVE_FROM_FEED = "REMOVE_FROM_FEED"
    OPEN_CHAT = "OPEN_CHAT"
    CLOSE_CHAT = "CLOSE_CHAT"
    SHOW_BANNER = "SHOW_BANNER"


class NotificationKind(str, enum.Enum):
    LIKE_RECEIVED = "like-received"
    MUTUAL_MATCH = "mutual-match"
    CHAT_OPENED = "chat-opened"
    CONFIRMED = "confirmed"
    CLOSED = "closed"


@dataclass(frozen=True)
class ActionPolicy:
    severity: Severity
    effect: Effect
    notification: Optional[NotificationKind] = None


class Messages(NamedTuple):
    actor: str
    other: str


ACTION_DEFAULTS: dict[MatchAction, ActionPolicy] = {
    MatchAction.LIKE: ActionPolicy(Severity.INFO, Effect.REFRESH_LISTS, NotificationKind.LIKE_RECEIVED),
    MatchAction.CONFIRM_MUTUAL: ActionPolicy(Severity.SUCCESS, Effect.SHOW_BANNER, NotificationKind.MUTUAL_MATCH),
    MatchAction.OPEN_CHAT: ActionPolicy(Severity.INFO, Effect.OPEN_CHAT, NotificationKind.CHAT_OPENED),
    MatchAction.FREEZE: ActionPolicy(Severity.WARNING, Effect.REMOVE_FROM_FEED, NotificationKind.CLOSED),
    MatchAction.UNFREEZE: ActionPolicy(Severity.SUCCESS, Effect.REFRESH_LISTS, NotificationKind.CONFIRMED),
    MatchAction.BLOCK: ActionPolicy(Severity.WARNING, Effect.CLOSE_CHAT, NotificationKind.CLOSED),
    MatchAction.UNBLOCK: ActionPolicy(Severity.SUCCESS, Effect.REFRESH_LISTS, NotificationKind.CONFIRMED),
    MatchAction.ARCHIVE: ActionPolicy(Severity.INFO, Effect.MOVE_TO_ARCHIVE, NotificationKind.CLOSED),
    MatchAction.UPDATE: ActionPolicy(Severity.INFO, Effect.REFRESH_LISTS),
}

BECAME_MUTUAL_POLICY = ActionPolicy(Severity.SUCCESS, Effect.SHOW_BANNER, NotificationKind.MUTUAL_MATCH)

MUTUAL_MESSAGES: dict[OperatingContext, Messages] = {
    OperatingContext.NONE: Messages(
        "You approved each other. It's a match!",
        "You approved each other. It's a match!",
    ),
    OperatingContext.EVENT_SCOPED: Messages(
        "You approved each other. It's a match! (event pool)",
        "You approved each other. It's a match! (event pool)",
    ),
    OperatingContext.GLOBAL_POOL: Messages(
        "You approved each other. It's a match! (global pool)",
        "You approved each other. It's a match! (global pool)",
    ),
    OperatingContext.POST_EVENT: Messages(
        "You approved each other. It's a match! (after the event)",
        "You approved each other. It's a match! (after the event)",
    ),
}

MUTUAL_BROKEN_MESSAGES = Messages(
    "Mutual approval was withdrawn. The match is no longer mutual.",
    "Mutual approval was withdrawn. The match is no longer mutual.",
)

ADMIN_MUTUAL_MESSAGES = Messages(
    "The match became mutual (system/administrator).",
    "The match became mutual (system/administrator).",
)

ADMIN_MUTUAL_BROKEN_MESSAGES = Messages(
    "Mutual approval was withdrawn (system/administrator).",
    "Mutual approval was withdrawn (system/administrator).",
)

ADMIN_MESSAGES: dict[MatchAction, Messages] = {
    MatchAction.LIKE: Messages(
        "Approval recorded (system/administrator).",
        "The match was approved on your behalf (system/administrator).",
    ),
    MatchAction.CONFIRM_MUTUAL: Messages(
        "Mutual match confirmed (system/administrator).",
        "Your match was confirmed as mutual (system/administrator).",
    ),
    MatchAction.OPEN_CHAT: Messages(
        "Chat opened (system/administrator).",
        "Chat opened (system/administrator).",
    ),
    MatchAction.FREEZE: Messages(
        "Freeze applied (system/administrator).",
        "The match was frozen (system/administrator).",
    ),
    MatchAction.UNFREEZE: Messages(
        "Freeze lifted (system/administrator).",
        "Freeze lifted (system/administrator).",
    ),
    MatchAction.BLOCK: Messages(
        "Block applied (system/administrator).",
        "The match was blocked (system/administrator).",
    ),
    MatchAction.UNBLOCK: Messages(
        "Block lifted (system/administrator).",
        "Block lifted (system/administrator).",
    ),
    MatchAction.ARCHIVE: Messages(
        "The match was moved to the archive (system/administrator).",
        "The match was moved to the archive (system/administrator).",
    ),
    MatchAction.UPDATE: Messages(
        "The match was updated (system/administrator).",
        "The match was updated (system/administrator).",
    ),
}

_NONE = OperatingContext.NONE
_EVENT = OperatingContext.EVENT_SCOPED
_GLOBAL = OperatingContext.GLOBAL_POOL
_POST = OperatingContext.POST_EVENT

PARTICIPANT_MESSAGES: dict[tuple[MatchAction, OperatingContext], Messages] = {
    # like
    (MatchAction.LIKE, _NONE): Messages(
        "You liked this match.",
        "Someone liked you.",
    ),
    (MatchAction.LIKE, _EVENT): Messages(
        "You liked this match in the event pool.",
        "Someone from the event liked you.",
    ),
    (MatchAction.LIKE, _GLOBAL): Messages(
        "You liked this match in the global pool.",
        "Someone in the global pool liked you.",
    ),
    (MatchAction.LIKE, _POST): Messages(
        "You liked this match after the event.",
        "Someone you met at the event liked you.",
    ),
    # chat
    (MatchAction.OPEN_CHAT, _NONE): Messages(
        "The chat is open. Say hello!",
        "Your match opened a chat with you.",
    ),
    (MatchAction.OPEN_CHAT, _EVENT): Messages(
        "The chat is open. Say hello!",
        "Your match from the event opened a chat with you.",
    ),
    (MatchAction.OPEN_CHAT, _GLOBAL): Messages(
        "The chat is open. Say hello!",
        "Your match from the global pool opened a chat with you.",
    ),
    # freeze / unfreeze
    (MatchAction.FREEZE, _NONE): Messages(
        "The match was frozen.",
        "The match was frozen.",
    ),
    (MatchAction.FREEZE, _EVENT): Messages(
        "You froze this match in the event pool. You will not see each other there until you unfreeze it.",
        "This match was frozen in the event pool. You will not see this participant there for now.",
    ),
    (MatchAction.FREEZE, _GLOBAL): Messages(
        "You froze this match in the global pool. It is paused until you unfreeze it.",
        "This match was frozen in the global pool. Chat and visibility may be paused until it is unfrozen.",
    ),
    (MatchAction.FREEZE, _POST): Messages(
        "You froze this match after the event ended. It is paused until you unfreeze it.",
        "This match was frozen after the event ended.",
    ),
    (MatchAction.UNFREEZE, _NONE): Messages(
        "The match was unfrozen.",
        "The match was unfrozen.",
    ),
    (MatchAction.UNFREEZE, _EVENT): Messages(
        "You unfroze this match in the event pool. It will show again according to the event rules.",
        "This match was unfrozen in the event pool. It may show again according to the event rules.",
    ),
    (MatchAction.UNFREEZE, _GLOBAL): Messages(
        "You unfroze this match in the global pool. It is back to its previous status.",
        "This match was unfrozen in the global pool. It is back to its previous status.",
    ),
    (MatchAction.UNFREEZE, _POST): Messages(
        "You unfroze this match after the event ended. It is back to its previous status.",
        "This match was unfrozen after the event ended.",
    ),
    # block / unblock
    (MatchAction.BLOCK, _NONE): Messages(
        "Block applied.",
        "The match was blocked.",
    ),
    (MatchAction.BLOCK, _EVENT): Messages(
        "You blocked this participant in the event pool. You will not see each other there.",
        "You were blocked in the event pool. You will not see this participant there.",
    ),
    (MatchAction.BLOCK, _GLOBAL): Messages(
        "You blocked this participant in the global pool. The match is removed from your lists and the chat is closed.",
        "Access to this match was blocked in the global pool.",
    ),
    (MatchAction.BLOCK, _POST): Messages(
        "You blocked this participant after the event ended.",
        "Access to this match was blocked after the event ended.",
    ),
    (MatchAction.UNBLOCK, _NONE): Messages(
        "Block lifted.",
        "Block lifted.",
    ),
    (MatchAction.UNBLOCK, _EVENT): Messages(
        "You unblocked this participant in the event pool. The match will show again according to the event rules.",
        "A block was lifted in the event pool. The match may show again according to the event rules.",
    ),
    (MatchAction.UNBLOCK, _GLOBAL): Messages(
        "You unblocked this participant in the global pool. The match can return to its previous status.",
        "A block was lifted in the global pool. The match can return to its previous status.",
    ),
    (MatchAction.UNBLOCK, _POST): Messages(
        "You unblocked this participant after the event ended.",
        "A block was lifted after the event ended.",
    ),
    # archive / update: no context-specific wording
    (MatchAction.ARCHIVE, _NONE): Messages(
        "You moved the match to the archive.",
        "The match was moved to the archive.",
    ),
    (MatchAction.UPDATE, _NONE): Messages(
        "The match was updated.",
        "The match was updated.",
    ),
}

# confirmation wording is the mutual wording for each context
PARTICIPANT_MESSAGES.update({
    (MatchAction.CONFIRM_MUTUAL, context): messages
    for context, messages in MUTUAL_MESSAGES.items()
})


def action_policy(action: MatchAction) -> ActionPolicy:
    return ACTION_DEFAULTS[action]


def messages_for(
    action: MatchAction,
    context: OperatingContext,
    actor_class: ActorClass,
) -> Messages:
    if actor_class == ActorClass.ADMIN_OR_SYSTEM:
        return ADMIN_MESSAGES[action]
    return PARTICIPANT_MESSAGES.get((action, context)) or PARTICIPANT_MESSAGES[(action, _NONE)]


def mutual_messages_for(context: OperatingContext, actor_class: ActorClass) -> Messages:
    if actor_class == ActorClass.ADMIN_OR_SYSTEM:
        return ADMIN_MUTUAL_MESSAGES
    return MUTUAL_MESSAGES[context]


def mutual_broken_messages_for(actor_class: ActorClass) -> Messages:
    if actor_class == ActorClass.ADMIN_OR_SYSTEM:
        return ADMIN_MUTUAL_BROKEN_MESSAGES
    return MUTUAL_BROKEN_MESSAGES


def missing_policy_entries() -> list[str]:
    """Lists every action/context combination the tables cannot answer."""
    missing = []
    for action in MatchAction:
        if action not in ACTION_DEFAULTS:
            missing.append(f"{action.name}: no default policy")
        if action not in ADMIN_MESSAGES:
            missing.append(f"{action.name}: no administrator wording")
        if (action, _NONE) not in PARTICIPANT_MESSAGES:
            missing.append(f"{action.name}: no default participant wording")
    for context in OperatingContext:
        if context not in MUTUAL_MESSAGES:
            missing.append(f"{context.name}: no mutual wording")
    return missing
