"""
Classification of who acted and where.

Source tags map to an actor class through a closed table. An unknown source
tag is treated as an ordinary participant (the less privileged class), while
an unknown mode tag is rejected.
"""

import enum

from matchcore.lifecycle.errors import UnrecognizedContext


class ActorClass(str, enum.Enum):
    PARTICIPANT = "PARTICIPANT"
    ADMIN_OR_SYSTEM = "ADMIN_OR_SYSTEM"


class OperatingContext(str, enum.Enum):
    NONE = "NONE"
    EVENT_SCOPED = "EVENT_SCOPED"
    GLOBAL_POOL = "GLOBAL_POOL"
    POST_EVENT = "POST_EVENT"


class SourceModule(str, enum.Enum):
    MATCH_SERVICE = "MATCH_SERVICE"
    MATCH_CONTROLLER = "MATCH_CONTROLLER"
    CHAT_SERVICE = "CHAT_SERVICE"
    USER_ACTION_SERVICE = "USER_ACTION_SERVICE"
    GLOBAL_POOL_SERVICE = "GLOBAL_POOL_SERVICE"
    ADMIN_CONSOLE = "ADMIN_CONSOLE"
    EVENT_ADMIN_CONSOLE = "EVENT_ADMIN_CONSOLE"
    USER_ADMIN_CONSOLE = "USER_ADMIN_CONSOLE"
    SYSTEM_CORE = "SYSTEM_CORE"
    SYSTEM_RULES = "SYSTEM_RULES"
    SYSTEM_AUDIT_TRAIL = "SYSTEM_AUDIT_TRAIL"
    SYSTEM_SECURITY_CENTER = "SYSTEM_SECURITY_CENTER"
    AUTO_MODERATION = "AUTO_MODERATION"


# Review this set whenever a SourceModule member is added.
ADMIN_OR_SYSTEM_SOURCES = frozenset({
    SourceModule.ADMIN_CONSOLE,
    SourceModule.EVENT_ADMIN_CONSOLE,
    SourceModule.USER_ADMIN_CONSOLE,
    SourceModule.SYSTEM_CORE,
    SourceModule.SYSTEM_RULES,
    SourceModule.SYSTEM_AUDIT_TRAIL,
    SourceModule.SYSTEM_SECURITY_CENTER,
    SourceModule.AUTO_MODERATION,
})

_MODE_ALIASES = {
    "none": OperatingContext.NONE,
    "event": OperatingContext.EVENT_SCOPED,
    "event_scoped": OperatingContext.EVENT_SCOPED,
    "wedding": OperatingContext.EVENT_SCOPED,
    "global": OperatingContext.GLOBAL_POOL,
    "global_pool": OperatingContext.GLOBAL_POOL,
    "post_event": OperatingContext.POST_EVENT,
    "past_event": OperatingContext.POST_EVENT,
    "past_wedding": OperatingContext.POST_EVENT,
}


def parse_source(tag) -> SourceModule | None:
    if isinstance(tag, SourceModule):
        return tag
    if not isinstance(tag, str):
        return None
    try:
        return SourceModule(tag.strip().upper())
    except ValueError:
        return None


def classify(source_tag) -> ActorClass:
    if parse_source(source_tag) in ADMIN_OR_SYSTEM_SOURCES:
        return ActorClass.ADMIN_OR_SYSTEM
    return ActorClass.PARTICIPANT


def classify_mode(mode_tag) -> OperatingContext:
    if isinstance(mode_tag, OperatingContext):
        return mode_tag
    if mode_tag is None:
        return OperatingContext.NONE
    if not isinstance(mode_tag, str):
        raise UnrecognizedContext(mode_tag)

    key = mode_tag.strip().lower().replace("-", "_")
    if not key:
        return OperatingContext.NONE
    if key in _MODE_ALIASES:
        return _MODE_ALIASES[key]
    raise UnrecognizedContext(mode_tag)
