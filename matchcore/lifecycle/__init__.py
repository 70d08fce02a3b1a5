"""
Match lifecycle between two participants.

This module provides the match state machine and its feedback policy:
- Snapshot of one match (approvals, status, restore target, chat bookkeeping)
- Status resolution (NONE -> PENDING -> MUTUAL -> ACTIVE, freeze/block/archive)
- Context classification (participant vs administrator/system, operating pool)
- Feedback envelopes (wording, stable code, UI hints, notification, audit)

The pure functions are `resolve` and `build_feedback`. The service entry
points are `process_match_action` and `open_match` in processor.py.
"""

from .actions import ActionRequest, MatchAction
from .chat import mark_read, mark_seen, register_message
from .context import ActorClass, OperatingContext, SourceModule, classify, classify_mode
from .engine import Resolution, derive_status, is_noop, resolve
from .errors import (
    ActorNotInRelationship,
    InvalidSnapshot,
    InvalidTransition,
    SuspendedByOtherSide,
    MatchLifecycleError,
    MatchNotFound,
    StaleSnapshot,
    TerminalStateViolation,
    UnrecognizedAction,
    UnrecognizedContext,
)
from .feedback import FeedbackEnvelope, build_feedback
from .policy import Effect, NotificationKind, Severity
from .ports import LoggingAuditSink
from .processor import open_match, process_match_action
from .repo import MatchRepository
from .snapshot import MatchSnapshot, MatchStatus

__all__ = [
    # Service entry points
    "process_match_action",
    "open_match",
    "MatchRepository",
    "LoggingAuditSink",

    # Core
    "MatchSnapshot",
    "MatchStatus",
    "MatchAction",
    "ActionRequest",
    "Resolution",
    "resolve",
    "derive_status",
    "is_noop",
    "build_feedback",
    "FeedbackEnvelope",

    # Classification and policy
    "ActorClass",
    "OperatingContext",
    "SourceModule",
    "classify",
    "classify_mode",
    "Severity",
    "Effect",
    "NotificationKind",

    # Chat bookkeeping
    "register_message",
    "mark_read",
    "mark_seen",

    # Errors
    "MatchLifecycleError",
    "TerminalStateViolation",
    "ActorNotInRelationship",
    "UnrecognizedAction",
    "UnrecognizedContext",
    "InvalidTransition",
    "SuspendedByOtherSide",
    "InvalidSnapshot",
    "StaleSnapshot",
    "MatchNotFound",
]
